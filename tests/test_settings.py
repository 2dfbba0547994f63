"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from finder.config.settings import get_settings


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("AITUNNEL_API_KEY", "FINDER_ANALYSIS_MODEL", "FINDER_SEARCH_MODEL", "FINDER_REQUEST_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)

    settings = get_settings()

    assert settings.aitunnel_api_key == ""
    assert settings.analysis_model == "gemini-2.5-flash"
    assert settings.request_timeout == 60.0


def test_search_model_falls_back_to_analysis_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINDER_ANALYSIS_MODEL", "gemini-2.5-pro")
    monkeypatch.delenv("FINDER_SEARCH_MODEL", raising=False)
    monkeypatch.setenv("FINDER_REQUEST_TIMEOUT", "15")

    settings = get_settings()

    assert settings.search_model == "gemini-2.5-pro"
    assert settings.request_timeout == 15.0


def test_env_file_does_not_override_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "# local\nAITUNNEL_API_KEY=from-file\nFINDER_MAX_IMAGE_BYTES=2048\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("AITUNNEL_API_KEY", "from-env")
    monkeypatch.setenv("FINDER_MAX_IMAGE_BYTES", "0")
    monkeypatch.delenv("FINDER_MAX_IMAGE_BYTES")

    settings = get_settings()

    assert settings.aitunnel_api_key == "from-env"
    assert settings.max_image_bytes == 2048
