"""Shared dependencies passed into handler setup functions."""

from __future__ import annotations

from dataclasses import dataclass

from finder.config.settings import FinderSettings
from finder.session.registry import SessionRegistry


@dataclass(slots=True)
class BotContext:
    """Container for objects shared across handlers."""

    settings: FinderSettings
    sessions: SessionRegistry
