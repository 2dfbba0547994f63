"""Commands that clear, restart or share the current session."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from finder.bot_service.context import BotContext
from finder.bot_service.filters import SessionFilter
from finder.bot_service.keyboards import MODE_KEYBOARD
from finder.bot_service.rendering import CAMERA_HINT, CHOOSER_TEXT, UPLOAD_HINT, build_share_text
from finder.session import ChatSession, InputMode

_MODE_HINTS = {
    InputMode.WEBCAM: CAMERA_HINT,
    InputMode.UPLOAD: UPLOAD_HINT,
}


def setup(router: Router, context: BotContext) -> None:
    """Register /clear, /reset, /switch, /dismiss and /share."""

    @router.message(Command("clear"), SessionFilter(context))
    async def handle_clear(message: Message, session: ChatSession) -> None:
        session.orchestrator.clear_capture()
        mode = session.orchestrator.snapshot().input_mode
        hint = _MODE_HINTS.get(mode)
        if hint is None:
            await message.answer(CHOOSER_TEXT, reply_markup=MODE_KEYBOARD)
            return
        await message.answer(f"Фото убрано. {hint}")

    @router.message(Command("reset"), SessionFilter(context))
    async def handle_reset(message: Message, session: ChatSession) -> None:
        session.orchestrator.reset(preserve_input_mode=False)
        await message.answer(CHOOSER_TEXT, reply_markup=MODE_KEYBOARD)

    @router.message(Command("switch"), SessionFilter(context, idle_only=True))
    async def handle_switch(message: Message, session: ChatSession) -> None:
        mode = session.orchestrator.switch_input_mode()
        hint = _MODE_HINTS.get(mode)
        if hint is None:
            await message.answer(CHOOSER_TEXT, reply_markup=MODE_KEYBOARD)
            return
        await message.answer(hint)

    @router.message(Command("switch"))
    async def handle_switch_busy(message: Message) -> None:
        await message.answer("Дождитесь окончания анализа, потом можно будет переключиться.")

    @router.message(Command("dismiss"), SessionFilter(context))
    async def handle_dismiss(message: Message, session: ChatSession) -> None:
        session.orchestrator.dismiss_error()
        await message.answer("Сообщение об ошибке скрыто.")

    @router.message(Command("share"), SessionFilter(context))
    async def handle_share(message: Message, session: ChatSession) -> None:
        snapshot = session.orchestrator.snapshot()
        if snapshot.is_busy or snapshot.analysis is None or snapshot.search_result is None:
            await message.answer("Поделиться можно, когда будут готовы анализ и похожие вещи.")
            return
        await message.answer(
            build_share_text(snapshot.analysis, snapshot.search_result),
            parse_mode=None,
        )
