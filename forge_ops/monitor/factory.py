"""Convenience factory for wiring the monitoring stack."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from forge_ops.checks import (
    InboxCheck,
    RailwayCheck,
    SentryCheck,
    SupabaseCheck,
    UptimeCheck,
)
from forge_ops.checks.base import BaseCheck
from forge_ops.checks.railway import dashboard_url
from forge_ops.checks.sentry import issues_url
from forge_ops.core.config import Settings
from forge_ops.monitor.aggregator import BriefingAggregator
from forge_ops.monitor.channels import NotificationChannel, SlackChannel
from forge_ops.monitor.classifier import AlertClassifier
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.scheduler import CycleScheduler
from forge_ops.monitor.sentinel import QuickSentinel

logger = structlog.get_logger(__name__)


@dataclass
class MonitorStack:
    """Everything the entrypoint needs, plus the resources to release."""

    checks: list[BaseCheck]  # type: ignore[type-arg]
    dispatcher: NotificationDispatcher
    aggregator: BriefingAggregator
    sentinel: QuickSentinel
    scheduler: CycleScheduler

    async def close(self) -> None:
        for check in self.checks:
            try:
                await check.close()
            except Exception:
                logger.exception("check_close_error", source=check.source)
        await self.dispatcher.close()


def create_monitor_stack(
    settings: Settings,
    channels: list[NotificationChannel] | None = None,
) -> MonitorStack:
    """Build checks, classifier, aggregator, sentinel and scheduler from settings.

    The quick cycle and the full cycle share the uptime and Railway check
    instances; checks hold no state between runs.
    """
    if channels is None:
        channels = [SlackChannel(settings.slack)]

    dispatcher = NotificationDispatcher(
        channels=channels,
        timezone=settings.schedule.timezone,
    )

    uptime = UptimeCheck(settings.uptime)
    supabase = SupabaseCheck(settings.supabase)
    sentry = SentryCheck(settings.sentry)
    railway = RailwayCheck(settings.railway)
    guard = settings.schedule.check_guard_secs
    email = InboxCheck(settings.email, max_session_secs=guard)

    classifier = AlertClassifier(
        issues_url=issues_url(settings.sentry),
        dashboard_url=dashboard_url(settings.railway),
        silent_threshold_days=settings.supabase.silent_threshold_days,
    )

    aggregator = BriefingAggregator(
        uptime=uptime,
        supabase=supabase,
        sentry=sentry,
        railway=railway,
        email=email,
        classifier=classifier,
        guard_secs=guard,
    )
    sentinel = QuickSentinel(
        uptime=uptime,
        railway=railway,
        classifier=classifier,
        dispatcher=dispatcher,
        guard_secs=guard,
    )
    scheduler = CycleScheduler(
        aggregator=aggregator,
        sentinel=sentinel,
        dispatcher=dispatcher,
        config=settings.schedule,
    )

    return MonitorStack(
        checks=[uptime, supabase, sentry, railway, email],
        dispatcher=dispatcher,
        aggregator=aggregator,
        sentinel=sentinel,
        scheduler=scheduler,
    )
