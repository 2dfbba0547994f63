"""Session state machine for the outfit pipeline."""

from .orchestrator import OutfitAnalysisGateway, SessionOrchestrator
from .registry import ChatSession, SessionRegistry
from .state import InputMode, SessionSnapshot, SessionStage

__all__ = [
    "ChatSession",
    "InputMode",
    "OutfitAnalysisGateway",
    "SessionOrchestrator",
    "SessionRegistry",
    "SessionSnapshot",
    "SessionStage",
]
