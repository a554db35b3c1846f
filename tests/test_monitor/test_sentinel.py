"""Tests for QuickSentinel — silence on healthy, escalation on outages."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

from forge_ops.checks.base import BaseCheck
from forge_ops.core.types import (
    CheckResult,
    CheckSource,
    EndpointStatus,
    HealthStatus,
    RailwayData,
    RailwayResult,
    UptimeData,
    UptimeResult,
)
from forge_ops.monitor.classifier import AlertClassifier
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.sentinel import QuickSentinel
from forge_ops.monitor.types import Alert, DeliveryResult, Severity


class StubCheck(BaseCheck[Any]):
    def __init__(self, result: CheckResult[Any], delay: float = 0.0) -> None:
        super().__init__()
        self.source = result.source
        self.result_model = type(result)
        self._result = result
        self._delay = delay

    def empty_payload(self) -> Any:
        return type(self._result.payload)()

    async def execute(self) -> Any:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._result.payload

    async def run(self) -> CheckResult[Any]:
        await self.execute()
        return self._result


def _uptime(*down: str) -> UptimeResult:
    endpoints = [EndpointStatus(name="Frontend", url="https://app", status=HealthStatus.HEALTHY)]
    endpoints += [EndpointStatus(url=url, status=HealthStatus.DOWN) for url in down]
    return UptimeResult.success(CheckSource.UPTIME, UptimeData(endpoints=endpoints))


def _railway(status: HealthStatus = HealthStatus.HEALTHY) -> RailwayResult:
    return RailwayResult.success(CheckSource.RAILWAY, RailwayData(status=status))


def _dispatcher() -> AsyncMock:
    dispatcher = AsyncMock(spec=NotificationDispatcher)
    dispatcher.send_alert.return_value = DeliveryResult(kind="alert", channels=1, delivered=1)
    return dispatcher


def _sentinel(
    uptime: CheckResult[Any] | StubCheck,
    railway: CheckResult[Any] | StubCheck,
    dispatcher: AsyncMock,
    guard_secs: float = 1.0,
) -> QuickSentinel:
    return QuickSentinel(
        uptime=uptime if isinstance(uptime, StubCheck) else StubCheck(uptime),
        railway=railway if isinstance(railway, StubCheck) else StubCheck(railway),
        classifier=AlertClassifier(dashboard_url="https://railway.app/project/p"),
        dispatcher=dispatcher,  # type: ignore[arg-type]
        guard_secs=guard_secs,
    )


def _sent(dispatcher: AsyncMock) -> list[Alert]:
    return [c.args[0] for c in dispatcher.send_alert.await_args_list]


class TestQuickCycle:
    async def test_healthy_is_silent(self) -> None:
        dispatcher = _dispatcher()
        await _sentinel(_uptime(), _railway(), dispatcher).run_quick_cycle()
        assert dispatcher.send_alert.await_count == 0
        assert dispatcher.send_report.await_count == 0

    async def test_degraded_is_silent(self) -> None:
        dispatcher = _dispatcher()
        await _sentinel(_uptime(), _railway(HealthStatus.DEGRADED), dispatcher).run_quick_cycle()
        assert dispatcher.send_alert.await_count == 0

    async def test_one_endpoint_down(self) -> None:
        dispatcher = _dispatcher()
        await _sentinel(_uptime("https://api"), _railway(), dispatcher).run_quick_cycle()
        alerts = _sent(dispatcher)
        assert len(alerts) == 1
        assert alerts[0].severity == Severity.CRITICAL
        assert "https://api" in (alerts[0].details or "")

    async def test_each_outage_sent_individually(self) -> None:
        dispatcher = _dispatcher()
        await _sentinel(
            _uptime("https://api"), _railway(HealthStatus.DOWN), dispatcher,
        ).run_quick_cycle()
        alerts = _sent(dispatcher)
        assert [a.source for a in alerts] == [CheckSource.UPTIME, CheckSource.RAILWAY]
        assert alerts[1].action_url == "https://railway.app/project/p"

    async def test_failed_check_alerts(self) -> None:
        dispatcher = _dispatcher()
        failed = UptimeResult.failure(CheckSource.UPTIME, UptimeData(), "no uptime endpoints configured")
        await _sentinel(failed, _railway(), dispatcher).run_quick_cycle()
        alerts = _sent(dispatcher)
        assert len(alerts) == 1
        assert alerts[0].severity == Severity.WARNING

    async def test_hung_check_alerts(self) -> None:
        dispatcher = _dispatcher()
        hung = StubCheck(_railway(), delay=10.0)
        await _sentinel(_uptime(), hung, dispatcher, guard_secs=0.05).run_quick_cycle()
        alerts = _sent(dispatcher)
        assert len(alerts) == 1
        assert alerts[0].source == CheckSource.RAILWAY
        assert alerts[0].severity == Severity.WARNING

    async def test_repeated_runs_repeat_alerts(self) -> None:
        dispatcher = _dispatcher()
        sentinel = _sentinel(_uptime("https://api"), _railway(), dispatcher)
        await sentinel.run_quick_cycle()
        await sentinel.run_quick_cycle()
        assert dispatcher.send_alert.await_count == 2

    async def test_notifier_failure_does_not_raise(self) -> None:
        dispatcher = _dispatcher()
        dispatcher.send_alert.return_value = DeliveryResult(
            kind="alert", channels=1, errors=["SlackChannel: rejected"],
        )
        await _sentinel(
            _uptime("https://api"), _railway(HealthStatus.DOWN), dispatcher,
        ).run_quick_cycle()
        assert dispatcher.send_alert.await_count == 2
