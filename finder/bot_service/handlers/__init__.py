"""Register message and command handlers."""

from __future__ import annotations

from aiogram import Router

from finder.bot_service.context import BotContext

from . import capture, controls, start


def setup_handlers(router: Router, context: BotContext) -> None:
    """Attach all handler groups to the provided router."""

    start.setup(router, context)
    controls.setup(router, context)
    capture.setup(router, context)
