"""Quick cycle — frequent down-only check that alerts immediately."""

from __future__ import annotations

import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.core.types import RailwayData, UptimeData
from forge_ops.monitor.classifier import AlertClassifier
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.fanout import gather_checks

logger = structlog.get_logger(__name__)


class QuickSentinel:
    """Runs the uptime and Railway checks and alerts on outages.

    Silent when both are healthy. Each outage is delivered as its own
    alert; nothing is remembered between runs, so a sustained outage alerts
    on every run.
    """

    def __init__(
        self,
        uptime: BaseCheck[UptimeData],
        railway: BaseCheck[RailwayData],
        classifier: AlertClassifier,
        dispatcher: NotificationDispatcher,
        guard_secs: float = 60.0,
    ) -> None:
        self._uptime = uptime
        self._railway = railway
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._guard_secs = guard_secs

    async def run_quick_cycle(self) -> None:
        uptime, railway = await gather_checks(
            [self._uptime, self._railway],
            guard_secs=self._guard_secs,
        )
        alerts = self._classifier.classify_outages(uptime, railway)

        if not alerts:
            logger.info("quick_cycle_passed")
            return

        for alert in alerts:
            logger.warning(
                "quick_cycle_alert",
                severity=alert.severity.name,
                source=alert.source,
                message=alert.message,
                details=alert.details,
            )
            await self._dispatcher.send_alert(alert)
