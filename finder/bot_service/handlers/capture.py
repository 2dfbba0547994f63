"""Handlers for incoming photos and image files."""

from __future__ import annotations

import logging
from typing import Sequence

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramNetworkError
from aiogram.types import LinkPreviewOptions, Message

from finder.bot_service.context import BotContext
from finder.bot_service.filters import SessionFilter
from finder.bot_service.rendering import (
    ANALYZING_MESSAGE,
    NOTHING_FOUND_MESSAGE,
    SEARCHING_MESSAGE,
    SHARE_HINT,
    pack_blocks,
    render_analysis,
    render_error,
    render_similar_items,
    render_sources,
)
from finder.providers import ImagePayload, InputError
from finder.session import ChatSession, InputMode, SessionOrchestrator

logger = logging.getLogger(__name__)

_NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


def setup(router: Router, context: BotContext) -> None:
    """Register photo and document handlers."""

    @router.message(F.photo, SessionFilter(context))
    async def handle_photo(message: Message, session: ChatSession) -> None:
        orchestrator = session.orchestrator
        _select_mode_if_missing(orchestrator, InputMode.WEBCAM)
        orchestrator.clear_capture()
        try:
            data = await _download(message.bot, message.photo[-1].file_id)
            payload = session.camera.capture(data)
        except InputError as exc:
            await _report_input_error(message, orchestrator, str(exc))
            return
        await run_pipeline(message, orchestrator, payload)

    @router.message(F.document, SessionFilter(context))
    async def handle_document(message: Message, session: ChatSession) -> None:
        orchestrator = session.orchestrator
        _select_mode_if_missing(orchestrator, InputMode.UPLOAD)
        orchestrator.clear_capture()
        document = message.document
        try:
            if document.mime_type and not document.mime_type.startswith("image/"):
                raise InputError("Можно загружать только изображения.")
            data = await _download(message.bot, document.file_id)
            payload = session.upload.read_file(
                data,
                filename=document.file_name or "",
                mime_type=document.mime_type,
            )
        except InputError as exc:
            await _report_input_error(message, orchestrator, str(exc))
            return
        await run_pipeline(message, orchestrator, payload)

    @router.message(F.text)
    async def handle_text(message: Message) -> None:
        await message.answer("Пришлите фото образа или нажмите /start, чтобы выбрать способ загрузки.")


async def run_pipeline(message: Message, orchestrator: SessionOrchestrator, payload: ImagePayload) -> None:
    """Submit the image and report each stage as it completes."""

    analysis_task = orchestrator.submit_image(payload)
    generation = orchestrator.generation
    await message.answer(ANALYZING_MESSAGE)

    if not await analysis_task or not orchestrator.is_current(generation):
        return
    snapshot = orchestrator.snapshot()
    if snapshot.error:
        await message.answer(render_error(snapshot.error))
        return
    if snapshot.analysis is None:
        return
    await _answer_blocks(message, render_analysis(snapshot.analysis))

    search_task = orchestrator.pending_search
    if search_task is None:
        if not snapshot.analysis.has_items:
            await message.answer(NOTHING_FOUND_MESSAGE)
        return

    await message.answer(SEARCHING_MESSAGE)
    if not await search_task or not orchestrator.is_current(generation):
        return
    snapshot = orchestrator.snapshot()
    if snapshot.error:
        await message.answer(render_error(snapshot.error))
        return
    if snapshot.search_result is None:
        return

    blocks = render_similar_items(snapshot.search_result)
    sources = render_sources(snapshot.grounding_sources)
    if sources:
        blocks.append(sources)
    await _answer_blocks(message, blocks)
    await message.answer(SHARE_HINT)


def _select_mode_if_missing(orchestrator: SessionOrchestrator, mode: InputMode) -> None:
    if orchestrator.snapshot().input_mode is InputMode.NONE:
        orchestrator.set_input_mode(mode)


async def _download(bot: Bot, file_id: str) -> bytes:
    try:
        file_info = await bot.get_file(file_id)
        file_stream = await bot.download_file(file_info.file_path)
    except TelegramNetworkError as exc:
        logger.warning("Failed to download file %s: %s", file_id, exc)
        raise InputError("Не получилось скачать фото с серверов Telegram. Попробуйте ещё раз.") from exc
    try:
        return file_stream.read()
    finally:
        file_stream.close()


async def _report_input_error(message: Message, orchestrator: SessionOrchestrator, reason: str) -> None:
    orchestrator.report_input_error(reason)
    await message.answer(render_error(reason))


async def _answer_blocks(message: Message, blocks: Sequence[str]) -> None:
    for text in pack_blocks(blocks):
        await message.answer(text, link_preview_options=_NO_PREVIEW)
