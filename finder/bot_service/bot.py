"""Entrypoint for the outfit finder Telegram bot."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from aiogram import Bot, Dispatcher, Router
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from finder.api import OutfitGateway
from finder.bot_service.context import BotContext
from finder.bot_service.handlers import setup_handlers
from finder.config.settings import get_settings
from finder.monitoring.logging import configure_logging
from finder.session import SessionRegistry

logger = logging.getLogger(__name__)


async def main() -> None:
    """Initialise dependencies and start polling Telegram."""

    configure_logging()

    settings = get_settings()
    if not settings.bot_token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not configured.")
    if not settings.aitunnel_api_key:
        raise RuntimeError("AITUNNEL_API_KEY is not configured.")

    gateway = OutfitGateway(settings)
    sessions = SessionRegistry(settings, gateway)

    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dispatcher = Dispatcher()
    router = Router()
    setup_handlers(router, BotContext(settings=settings, sessions=sessions))
    dispatcher.include_router(router)

    try:
        logger.info("Starting outfit finder bot polling.")
        await dispatcher.start_polling(bot)
    finally:
        with suppress(Exception):
            await sessions.close()
        with suppress(Exception):
            await bot.session.close()
        with suppress(Exception):
            await gateway.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
