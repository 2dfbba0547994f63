"""Session state held by the orchestrator and the snapshot handed to presentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from finder.providers.base import ImagePayload
from finder.schemas import GroundingChunk, OutfitAnalysisResult, SimilarItemsSearchResult


class InputMode(str, Enum):
    """Which input provider is active."""

    NONE = "none"
    WEBCAM = "webcam"
    UPLOAD = "upload"


class SessionStage(str, Enum):
    """Pipeline stage derived from the session flags."""

    IDLE = "idle"
    IMAGE_CAPTURED = "image_captured"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    SEARCHING = "searching"
    SEARCHED = "searched"


@dataclass(slots=True)
class SessionState:
    """Mutable state; only the orchestrator writes to it."""

    image: ImagePayload | None = None
    analysis: OutfitAnalysisResult | None = None
    search_result: SimilarItemsSearchResult | None = None
    grounding_sources: list[GroundingChunk] | None = None
    is_analyzing: bool = False
    is_searching: bool = False
    error: str | None = None
    input_mode: InputMode = InputMode.NONE
    generation: int = 0

    def clear_results(self) -> None:
        self.analysis = None
        self.search_result = None
        self.grounding_sources = None
        self.error = None

    def snapshot(self) -> "SessionSnapshot":
        return SessionSnapshot(
            image=self.image,
            analysis=self.analysis,
            search_result=self.search_result,
            grounding_sources=tuple(self.grounding_sources) if self.grounding_sources is not None else None,
            is_analyzing=self.is_analyzing,
            is_searching=self.is_searching,
            error=self.error,
            input_mode=self.input_mode,
        )


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Read-only view of the session."""

    image: ImagePayload | None = None
    analysis: OutfitAnalysisResult | None = None
    search_result: SimilarItemsSearchResult | None = None
    grounding_sources: tuple[GroundingChunk, ...] | None = None
    is_analyzing: bool = False
    is_searching: bool = False
    error: str | None = None
    input_mode: InputMode = field(default=InputMode.NONE)

    @property
    def is_busy(self) -> bool:
        return self.is_analyzing or self.is_searching

    @property
    def stage(self) -> SessionStage:
        if self.image is None:
            return SessionStage.IDLE
        if self.is_analyzing:
            return SessionStage.ANALYZING
        if self.is_searching:
            return SessionStage.SEARCHING
        if self.search_result is not None:
            return SessionStage.SEARCHED
        if self.analysis is not None:
            return SessionStage.ANALYZED
        return SessionStage.IMAGE_CAPTURED
