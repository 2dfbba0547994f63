"""Per-chat session bookkeeping."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass

from finder.config.settings import FinderSettings
from finder.providers import CameraCaptureProvider, FileUploadProvider
from finder.session.orchestrator import OutfitAnalysisGateway, SessionOrchestrator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChatSession:
    """Orchestrator together with the input providers feeding it."""

    orchestrator: SessionOrchestrator
    camera: CameraCaptureProvider
    upload: FileUploadProvider


class SessionRegistry:
    """Creates one session per chat on first use.

    At most ``settings.max_sessions`` sessions are kept. Once a new chat
    pushes the registry over that bound, the least recently used idle
    sessions are reset and forgotten; sessions with a stage in flight stay.
    """

    def __init__(self, settings: FinderSettings, gateway: OutfitAnalysisGateway) -> None:
        self._settings = settings
        self._gateway = gateway
        self._sessions: OrderedDict[int, ChatSession] = OrderedDict()

    def get(self, chat_id: int) -> ChatSession:
        session = self._sessions.get(chat_id)
        if session is not None:
            self._sessions.move_to_end(chat_id)
            return session

        camera = CameraCaptureProvider(self._settings.max_image_bytes)
        upload = FileUploadProvider(self._settings.max_image_bytes)
        session = ChatSession(
            orchestrator=SessionOrchestrator(self._gateway, providers=(camera, upload)),
            camera=camera,
            upload=upload,
        )
        self._sessions[chat_id] = session
        self._evict_idle(keep=chat_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions

    def _evict_idle(self, keep: int) -> None:
        excess = len(self._sessions) - max(1, self._settings.max_sessions)
        if excess <= 0:
            return
        for chat_id in list(self._sessions):
            if excess <= 0:
                break
            if chat_id == keep:
                continue
            session = self._sessions[chat_id]
            if session.orchestrator.snapshot().is_busy:
                continue
            session.orchestrator.reset()
            del self._sessions[chat_id]
            excess -= 1
            logger.info("Evicted idle session for chat %s", chat_id)

    async def close(self) -> None:
        await asyncio.gather(*(session.orchestrator.close() for session in self._sessions.values()))
        self._sessions.clear()
