"""Settings loader for the outfit finder bot."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate environment variables from a .env file if present."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(slots=True, frozen=True)
class FinderSettings:
    """Settings required by the bot and the model gateway."""

    bot_token: str = ""
    aitunnel_api_key: str = ""
    aitunnel_base_url: str = "https://api.aitunnel.ru/v1"
    analysis_model: str = "gemini-2.5-flash"
    search_model: str = "gemini-2.5-flash"
    request_timeout: float = 60.0
    max_image_bytes: int = 10 * 1024 * 1024
    max_sessions: int = 500
    log_level: str = "INFO"


def _build_settings() -> FinderSettings:
    _load_env_file()
    return FinderSettings(
        bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        aitunnel_api_key=os.getenv("AITUNNEL_API_KEY", ""),
        aitunnel_base_url=os.getenv("AITUNNEL_BASE_URL", "https://api.aitunnel.ru/v1"),
        analysis_model=os.getenv("FINDER_ANALYSIS_MODEL", "gemini-2.5-flash"),
        search_model=os.getenv(
            "FINDER_SEARCH_MODEL",
            os.getenv("FINDER_ANALYSIS_MODEL", "gemini-2.5-flash"),
        ),
        request_timeout=float(os.getenv("FINDER_REQUEST_TIMEOUT", "60")),
        max_image_bytes=int(os.getenv("FINDER_MAX_IMAGE_BYTES", str(10 * 1024 * 1024))),
        max_sessions=int(os.getenv("FINDER_MAX_SESSIONS", "500")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


@lru_cache(maxsize=1)
def get_settings() -> FinderSettings:
    """Return cached settings instance."""

    return _build_settings()
