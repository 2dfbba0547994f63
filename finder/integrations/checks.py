"""Connectivity checks for the model proxy."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from finder.api.gateway import OutfitGateway
from finder.config.settings import FinderSettings, get_settings

CHECK_NAME = "AITunnel"


@dataclass(slots=True)
class IntegrationCheckResult:
    """Outcome of one connectivity check."""

    name: str
    success: bool
    message: str


def _missing_key(name: str) -> IntegrationCheckResult:
    return IntegrationCheckResult(name=name, success=False, message="AITUNNEL_API_KEY is not configured.")


async def _with_gateway(
    settings: FinderSettings,
    call: Callable[[OutfitGateway], Awaitable[IntegrationCheckResult]],
    name: str,
) -> IntegrationCheckResult:
    gateway = OutfitGateway(settings)
    try:
        return await call(gateway)
    except Exception as exc:  # pragma: no cover - reported, not raised
        return IntegrationCheckResult(name=name, success=False, message=str(exc) or type(exc).__name__)
    finally:
        await gateway.close()


async def check_gateway() -> IntegrationCheckResult:
    """Ping the AITunnel proxy."""

    settings = get_settings()
    if not settings.aitunnel_api_key:
        return _missing_key(CHECK_NAME)

    async def _ping(gateway: OutfitGateway) -> IntegrationCheckResult:
        if await gateway.ping():
            return IntegrationCheckResult(name=CHECK_NAME, success=True, message="AITunnel API is reachable.")
        return IntegrationCheckResult(name=CHECK_NAME, success=False, message="AITunnel returned no models.")

    return await _with_gateway(settings, _ping, CHECK_NAME)


async def check_models() -> IntegrationCheckResult:
    """Verify that the configured analysis and search models are served."""

    name = f"{CHECK_NAME} models"
    settings = get_settings()
    if not settings.aitunnel_api_key:
        return _missing_key(name)

    async def _lookup(gateway: OutfitGateway) -> IntegrationCheckResult:
        available = await gateway.available_models()
        wanted = dict.fromkeys([settings.analysis_model, settings.search_model])
        missing = [model for model in wanted if model not in available]
        if missing:
            return IntegrationCheckResult(name=name, success=False, message=f"Not available: {', '.join(missing)}.")
        return IntegrationCheckResult(name=name, success=True, message=f"Available: {', '.join(wanted)}.")

    return await _with_gateway(settings, _lookup, name)


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_gateway(), check_models()))
