"""Custom aiogram filters used by the bot."""

from __future__ import annotations

from typing import Any

from aiogram.filters import BaseFilter
from aiogram.types import Message

from finder.bot_service.context import BotContext


class SessionFilter(BaseFilter):
    """Injects the chat's session; with ``idle_only`` skips chats with a stage in flight."""

    def __init__(self, context: BotContext, *, idle_only: bool = False) -> None:
        self._context = context
        self._idle_only = idle_only

    async def __call__(self, message: Message) -> bool | dict[str, Any]:
        session = self._context.sessions.get(message.chat.id)
        if self._idle_only and session.orchestrator.snapshot().is_busy:
            return False
        return {"session": session}
