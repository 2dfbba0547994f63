"""Tests for the Telegram presentation of the pipeline."""

from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import pytest
import pytest_mock

from finder.api.gateway import AnalysisError
from finder.bot_service.handlers.capture import run_pipeline
from finder.bot_service.rendering import ANALYZING_MESSAGE, NOTHING_FOUND_MESSAGE, SEARCHING_MESSAGE, SHARE_HINT
from finder.config.settings import FinderSettings
from finder.providers import ImagePayload
from finder.schemas import GroundingChunk, OutfitAnalysisResult, SimilarItemsSearchResult
from finder.session import SessionOrchestrator, SessionRegistry

ANALYSIS = OutfitAnalysisResult.model_validate(
    {
        "identified_clothing": [{"item_name": "Hoodie", "type": "top", "color": "grey"}],
        "overall_impression": "Sporty.",
    },
)
SEARCH = SimilarItemsSearchResult.model_validate(
    {
        "similar_items_suggestions": [
            {
                "original_item_query": "grey Hoodie",
                "suggestions": [{"product_name": "Fleece hoodie", "shop_link": "https://shop.test/hoodie"}],
            },
        ],
    },
)
SOURCES = [GroundingChunk.model_validate({"web": {"uri": "https://shop.test", "title": "Shop"}})]


def _payload() -> ImagePayload:
    return ImagePayload(data=base64.b64encode(b"photo").decode("ascii"))


def _message(mocker: pytest_mock.MockerFixture) -> SimpleNamespace:
    return SimpleNamespace(answer=mocker.AsyncMock(return_value=None))


def _sent(message: SimpleNamespace) -> list[str]:
    return [call.args[0] for call in message.answer.await_args_list]


@pytest.mark.asyncio
async def test_pipeline_reports_each_stage(mocker: pytest_mock.MockerFixture) -> None:
    gateway = SimpleNamespace(
        analyze=mocker.AsyncMock(return_value=ANALYSIS),
        find_similar=mocker.AsyncMock(return_value=(SEARCH, SOURCES)),
    )
    orchestrator = SessionOrchestrator(gateway)
    message = _message(mocker)

    await run_pipeline(message, orchestrator, _payload())

    sent = _sent(message)
    assert sent[0] == ANALYZING_MESSAGE
    assert "Hoodie" in sent[1]
    assert sent[2] == SEARCHING_MESSAGE
    assert "Fleece hoodie" in sent[3]
    assert "Источники" in sent[3]
    assert sent[-1] == SHARE_HINT
    gateway.find_similar.assert_awaited_once()


@pytest.mark.asyncio
async def test_pipeline_reports_analysis_error(mocker: pytest_mock.MockerFixture) -> None:
    gateway = SimpleNamespace(
        analyze=mocker.AsyncMock(side_effect=AnalysisError("network error")),
        find_similar=mocker.AsyncMock(),
    )
    orchestrator = SessionOrchestrator(gateway)
    message = _message(mocker)

    await run_pipeline(message, orchestrator, _payload())

    sent = _sent(message)
    assert "network error" in sent[-1]
    gateway.find_similar.assert_not_awaited()


@pytest.mark.asyncio
async def test_pipeline_without_items_skips_search(mocker: pytest_mock.MockerFixture) -> None:
    gateway = SimpleNamespace(
        analyze=mocker.AsyncMock(return_value=OutfitAnalysisResult(overall_impression="Nothing to see")),
        find_similar=mocker.AsyncMock(),
    )
    orchestrator = SessionOrchestrator(gateway)
    message = _message(mocker)

    await run_pipeline(message, orchestrator, _payload())

    assert _sent(message)[-1] == NOTHING_FOUND_MESSAGE
    gateway.find_similar.assert_not_awaited()


def test_registry_keeps_one_session_per_chat() -> None:
    registry = SessionRegistry(FinderSettings(), gateway=SimpleNamespace())

    first = registry.get(1)

    assert registry.get(1) is first
    assert registry.get(2) is not first
    assert len(registry) == 2
    first.orchestrator.reset()
    assert first.camera.last_capture is None


def test_registry_evicts_least_recently_used_idle_session() -> None:
    registry = SessionRegistry(FinderSettings(max_sessions=2), gateway=SimpleNamespace())
    first = registry.get(1)
    registry.get(2)
    registry.get(1)

    registry.get(3)

    assert len(registry) == 2
    assert 2 not in registry
    assert 1 in registry
    assert registry.get(1) is first


@pytest.mark.asyncio
async def test_registry_never_evicts_busy_session(mocker: pytest_mock.MockerFixture) -> None:
    pending: asyncio.Future = asyncio.get_running_loop().create_future()

    async def _analyze(payload: ImagePayload) -> OutfitAnalysisResult:
        return await pending

    gateway = SimpleNamespace(analyze=_analyze, find_similar=mocker.AsyncMock())
    registry = SessionRegistry(FinderSettings(max_sessions=1), gateway=gateway)
    busy = registry.get(1)
    busy.orchestrator.submit_image(_payload())

    registry.get(2)
    assert 1 in registry
    assert len(registry) == 2

    pending.set_result(OutfitAnalysisResult())
    await busy.orchestrator.wait_idle()
    registry.get(3)

    assert 1 not in registry
    assert busy.orchestrator.snapshot().image is None
    await registry.close()
