"""Run connectivity checks against the model proxy."""

from __future__ import annotations

import asyncio
import sys
from typing import Iterable

from finder.integrations import IntegrationCheckResult, run_all_checks


def _format_result(result: IntegrationCheckResult) -> str:
    status = "✅" if result.success else "❌"
    return f"{status} {result.name}: {result.message}"


def print_results(results: Iterable[IntegrationCheckResult]) -> bool:
    """Print every result and report whether all of them passed."""

    passed = True
    for result in results:
        print(_format_result(result))
        passed = passed and result.success
    return passed


def main() -> None:
    results = asyncio.run(run_all_checks())
    if not print_results(results):
        sys.exit(1)


if __name__ == "__main__":
    main()
