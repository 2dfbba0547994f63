"""Session orchestrator: drives the analysis → similar-items pipeline for one session."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Protocol, Sequence

from finder.api.gateway import GatewayError
from finder.providers.base import ImagePayload, ImageProvider
from finder.schemas import (
    AnalyzedItem,
    GroundingChunk,
    OutfitAnalysisResult,
    SimilarItemsSearchResult,
)
from finder.session.state import InputMode, SessionSnapshot, SessionState

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_ERROR = "Не удалось проанализировать образ."
DEFAULT_SEARCH_ERROR = "Не удалось найти похожие вещи."


class OutfitAnalysisGateway(Protocol):
    """Remote service the orchestrator delegates analysis and search to."""

    async def analyze(self, payload: ImagePayload) -> OutfitAnalysisResult:
        ...

    async def find_similar(
        self,
        items: Sequence[AnalyzedItem],
    ) -> tuple[SimilarItemsSearchResult, list[GroundingChunk]]:
        ...


class SessionOrchestrator:
    """Owns the session state and sequences the two remote stages.

    Every new image and every reset bumps a generation counter. Stage tasks
    remember the generation they were started for and drop their result when
    it no longer matches, so a slow response for an old image can never
    overwrite the state of a newer one.

    The similar-items search is started explicitly when an analysis with a
    non-empty item list is stored, and never from anywhere else.
    """

    def __init__(
        self,
        gateway: OutfitAnalysisGateway,
        providers: Iterable[ImageProvider] = (),
    ) -> None:
        self._gateway = gateway
        self._providers = list(providers)
        self._state = SessionState()
        self._tasks: set[asyncio.Task[bool]] = set()
        self._analysis_task: asyncio.Task[bool] | None = None
        self._search_task: asyncio.Task[bool] | None = None

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def pending_search(self) -> asyncio.Task[bool] | None:
        """Search task of the current generation, if one was started."""

        return self._search_task

    def is_current(self, generation: int) -> bool:
        return generation == self._state.generation

    def snapshot(self) -> SessionSnapshot:
        return self._state.snapshot()

    def submit_image(self, payload: ImagePayload) -> asyncio.Task[bool]:
        """Store a new image and start analysing it.

        Must be called from a running event loop. The returned task resolves
        to ``True`` once its outcome has been written to the session, or to
        ``False`` if a newer image or a reset superseded it first.
        """

        if payload is None or not payload.data:
            raise ValueError("submit_image requires a non-empty image payload.")

        state = self._state
        state.generation += 1
        generation = state.generation
        state.clear_results()
        state.image = payload
        state.is_analyzing = True
        state.is_searching = False
        self._search_task = None

        logger.info("Generation %d: analysis started", generation)
        self._analysis_task = self._spawn(self._run_analysis(generation, payload), f"analysis-{generation}")
        return self._analysis_task

    def reset(self, preserve_input_mode: bool = False) -> None:
        """Drop the image and every result; optionally keep the chosen input mode."""

        state = self._state
        state.generation += 1
        state.image = None
        state.clear_results()
        state.is_analyzing = False
        state.is_searching = False
        if not preserve_input_mode:
            state.input_mode = InputMode.NONE
        self._analysis_task = None
        self._search_task = None
        for provider in self._providers:
            provider.clear()
        logger.info("Generation %d: session reset (input mode %s)", state.generation, state.input_mode.value)

    def clear_capture(self) -> None:
        self.reset(preserve_input_mode=True)

    def set_input_mode(self, mode: InputMode | str) -> None:
        self._state.input_mode = InputMode(mode)

    def switch_input_mode(self) -> InputMode:
        """Swap camera and upload; start over when an image is present or nothing was chosen."""

        state = self._state
        if state.image is not None or state.input_mode is InputMode.NONE:
            self.reset(preserve_input_mode=False)
        elif state.input_mode is InputMode.WEBCAM:
            state.input_mode = InputMode.UPLOAD
        else:
            state.input_mode = InputMode.WEBCAM
        return state.input_mode

    def report_input_error(self, message: str) -> None:
        """Surface a provider failure without entering the analysing state."""

        logger.warning("Input error: %s", message)
        self._state.error = message

    def dismiss_error(self) -> None:
        self._state.error = None

    async def wait_idle(self) -> None:
        """Wait until the current generation has no stage in flight."""

        if self._analysis_task is not None:
            await self._analysis_task
        if self._search_task is not None:
            await self._search_task

    async def close(self) -> None:
        """Cancel every outstanding stage task."""

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, coro, name: str) -> asyncio.Task[bool]:
        task = asyncio.create_task(coro, name=f"outfit-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_analysis(self, generation: int, payload: ImagePayload) -> bool:
        try:
            result = await self._gateway.analyze(payload)
        except GatewayError as exc:
            return self._fail_analysis(generation, str(exc) or DEFAULT_ANALYSIS_ERROR)
        except Exception:
            logger.exception("Unexpected failure while analysing outfit")
            return self._fail_analysis(generation, DEFAULT_ANALYSIS_ERROR)

        if not self.is_current(generation):
            logger.debug("Generation %d: discarding stale analysis", generation)
            return False

        state = self._state
        state.analysis = result
        state.is_analyzing = False
        logger.info("Generation %d: analysis stored (%d items)", generation, len(result.identified_clothing))
        self._start_search_if_needed(generation)
        return True

    def _fail_analysis(self, generation: int, message: str) -> bool:
        if not self.is_current(generation):
            logger.debug("Generation %d: discarding stale analysis error", generation)
            return False
        logger.error("Generation %d: analysis failed: %s", generation, message)
        state = self._state
        state.error = message
        state.analysis = None
        state.is_analyzing = False
        return True

    def _start_search_if_needed(self, generation: int) -> None:
        state = self._state
        analysis = state.analysis
        if analysis is None or not analysis.has_items:
            state.search_result = None
            state.grounding_sources = None
            logger.info("Generation %d: nothing identified, search skipped", generation)
            return
        if state.is_analyzing or state.is_searching or state.search_result is not None:
            return

        state.is_searching = True
        state.error = None
        items = analysis.identified_clothing
        logger.info("Generation %d: search started for %d items", generation, len(items))
        self._search_task = self._spawn(self._run_search(generation, items), f"search-{generation}")

    async def _run_search(self, generation: int, items: Sequence[AnalyzedItem]) -> bool:
        try:
            result, sources = await self._gateway.find_similar(items)
        except GatewayError as exc:
            return self._fail_search(generation, str(exc) or DEFAULT_SEARCH_ERROR)
        except Exception:
            logger.exception("Unexpected failure while searching similar items")
            return self._fail_search(generation, DEFAULT_SEARCH_ERROR)

        if not self.is_current(generation):
            logger.debug("Generation %d: discarding stale search result", generation)
            return False

        state = self._state
        state.search_result = result
        state.grounding_sources = list(sources)
        state.is_searching = False
        logger.info(
            "Generation %d: search stored (%d groups, %d sources)",
            generation,
            len(result.similar_items_suggestions),
            len(sources),
        )
        return True

    def _fail_search(self, generation: int, message: str) -> bool:
        if not self.is_current(generation):
            logger.debug("Generation %d: discarding stale search error", generation)
            return False
        logger.error("Generation %d: search failed: %s", generation, message)
        state = self._state
        state.error = message
        state.search_result = None
        state.grounding_sources = None
        state.is_searching = False
        return True
