"""Configuration helpers."""

from .settings import FinderSettings, get_settings

__all__ = ["FinderSettings", "get_settings"]
