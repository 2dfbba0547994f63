"""Start command and input mode selection."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message, ReplyKeyboardRemove

from finder.bot_service.context import BotContext
from finder.bot_service.filters import SessionFilter
from finder.bot_service.keyboards import CAMERA_BUTTON, MODE_KEYBOARD, UPLOAD_BUTTON
from finder.bot_service.rendering import CAMERA_HINT, CHOOSER_TEXT, UPLOAD_HINT
from finder.session import ChatSession, InputMode


def setup(router: Router, context: BotContext) -> None:
    """Register /start and the mode chooser."""

    @router.message(CommandStart(), SessionFilter(context))
    async def handle_start(message: Message, session: ChatSession) -> None:
        session.orchestrator.reset(preserve_input_mode=False)
        await message.answer(CHOOSER_TEXT, reply_markup=MODE_KEYBOARD)

    @router.message(Command("camera"), SessionFilter(context))
    @router.message(F.text == CAMERA_BUTTON, SessionFilter(context))
    async def handle_camera(message: Message, session: ChatSession) -> None:
        session.orchestrator.set_input_mode(InputMode.WEBCAM)
        await message.answer(CAMERA_HINT, reply_markup=ReplyKeyboardRemove())

    @router.message(Command("upload"), SessionFilter(context))
    @router.message(F.text == UPLOAD_BUTTON, SessionFilter(context))
    async def handle_upload(message: Message, session: ChatSession) -> None:
        session.orchestrator.set_input_mode(InputMode.UPLOAD)
        await message.answer(UPLOAD_HINT, reply_markup=ReplyKeyboardRemove())
