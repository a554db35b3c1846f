"""Guarded concurrent execution of checks."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.core.types import CheckResult

logger = structlog.stdlib.get_logger()

GUARD_FAILURE_REASON = "check did not complete"


async def gather_checks(
    checks: Sequence[BaseCheck[Any]],
    guard_secs: float,
) -> list[CheckResult[Any]]:
    """Run every check concurrently and wait for all of them to settle.

    ``BaseCheck.run()`` already converts its own faults into failed
    envelopes. This adds an outer guard: a check that hangs past
    ``guard_secs`` or raises anyway yields a synthetic failed envelope, so
    one misbehaving check never costs the others their results. Results are
    returned in the order of *checks*.
    """
    outcomes = await asyncio.gather(
        *(asyncio.wait_for(check.run(), timeout=guard_secs) for check in checks),
        return_exceptions=True,
    )

    results: list[CheckResult[Any]] = []
    for check, outcome in zip(checks, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, TimeoutError):
                reason = f"{GUARD_FAILURE_REASON} within {guard_secs:g}s"
            else:
                reason = f"{GUARD_FAILURE_REASON}: {outcome!r}"
            logger.error(
                "check_guard_tripped",
                source=check.source,
                error=reason,
            )
            results.append(check.failed(reason))
        else:
            results.append(outcome)
    return results
