"""Full-cycle aggregation — runs every check and composes the daily briefing."""

from __future__ import annotations

import time

import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.core.types import (
    EmailData,
    RailwayData,
    SentryData,
    SupabaseData,
    UptimeData,
    utcnow,
)
from forge_ops.monitor.classifier import AlertClassifier
from forge_ops.monitor.fanout import gather_checks
from forge_ops.monitor.status import derive_overall_status
from forge_ops.monitor.types import BriefingReport

logger = structlog.get_logger(__name__)


class BriefingAggregator:
    """Builds a BriefingReport from all five checks.

    ``run_full_cycle()`` never raises: every check runs concurrently under
    a guard, and a failed or hung check simply occupies its slot as a
    failed envelope.
    """

    def __init__(
        self,
        uptime: BaseCheck[UptimeData],
        supabase: BaseCheck[SupabaseData],
        sentry: BaseCheck[SentryData],
        railway: BaseCheck[RailwayData],
        email: BaseCheck[EmailData],
        classifier: AlertClassifier,
        guard_secs: float = 60.0,
    ) -> None:
        self._uptime = uptime
        self._supabase = supabase
        self._sentry = sentry
        self._railway = railway
        self._email = email
        self._classifier = classifier
        self._guard_secs = guard_secs

    async def run_full_cycle(self) -> BriefingReport:
        start = time.monotonic()
        uptime, supabase, sentry, railway, email = await gather_checks(
            [self._uptime, self._supabase, self._sentry, self._railway, self._email],
            guard_secs=self._guard_secs,
        )

        overall = derive_overall_status(uptime, supabase, railway)
        alerts = self._classifier.classify(uptime, supabase, sentry, railway, email)

        report = BriefingReport(
            timestamp=utcnow(),
            overall_status=overall,
            uptime=uptime,
            supabase=supabase,
            sentry=sentry,
            railway=railway,
            email=email,
            alerts=alerts,
        )

        logger.info(
            "full_cycle_completed",
            overall_status=overall,
            alerts=len(alerts),
            failed_checks=[r.source for r in report.results() if not r.ok],
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return report
