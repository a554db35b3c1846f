"""Tests for NotificationDispatcher — routing, best-effort delivery, logging."""

from __future__ import annotations

from forge_ops.core.types import (
    CheckSource,
    EmailData,
    EmailResult,
    HealthStatus,
    RailwayData,
    RailwayResult,
    SentryData,
    SentryResult,
    SupabaseData,
    SupabaseResult,
    UptimeData,
    UptimeResult,
)
from forge_ops.monitor.channels import NotificationChannel
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.types import Alert, BriefingReport, Severity


# ── Helpers ─────────────────────────────────────────────────────


class FakeChannel(NotificationChannel):
    """In-memory channel for testing."""

    def __init__(self, fail: bool = False, reject: bool = False) -> None:
        self.sent: list[str] = []
        self._fail = fail
        self._reject = reject
        self.closed = False

    async def send(self, text: str) -> bool:
        if self._fail:
            raise ConnectionError("fake error")
        if self._reject:
            return False
        self.sent.append(text)
        return True

    async def close(self) -> None:
        if self._fail:
            raise ConnectionError("close error")
        self.closed = True


def _alert() -> Alert:
    return Alert(
        severity=Severity.CRITICAL,
        source=CheckSource.UPTIME,
        message="Services are DOWN",
        details="https://api",
    )


def _report() -> BriefingReport:
    return BriefingReport(
        overall_status=HealthStatus.UNKNOWN,
        uptime=UptimeResult.failure(CheckSource.UPTIME, UptimeData(), "u"),
        supabase=SupabaseResult.failure(CheckSource.SUPABASE, SupabaseData(), "s"),
        sentry=SentryResult.failure(CheckSource.SENTRY, SentryData(), "e"),
        railway=RailwayResult.failure(CheckSource.RAILWAY, RailwayData(), "r"),
        email=EmailResult.failure(CheckSource.EMAIL, EmailData(), "m"),
    )


# ── Alerts ──────────────────────────────────────────────────────


class TestSendAlert:
    async def test_alert_routed(self) -> None:
        ch = FakeChannel()
        disp = NotificationDispatcher(channels=[ch])
        result = await disp.send_alert(_alert())
        assert result.ok
        assert result.delivered == 1
        assert len(ch.sent) == 1
        assert "UPTIME ISSUE" in ch.sent[0]

    async def test_multiple_channels(self) -> None:
        ch1, ch2 = FakeChannel(), FakeChannel()
        disp = NotificationDispatcher(channels=[ch1, ch2])
        await disp.send_alert(_alert())
        assert len(ch1.sent) == 1
        assert len(ch2.sent) == 1

    async def test_no_dedup_between_sends(self) -> None:
        ch = FakeChannel()
        disp = NotificationDispatcher(channels=[ch])
        await disp.send_alert(_alert())
        await disp.send_alert(_alert())
        assert len(ch.sent) == 2


# ── Briefings ───────────────────────────────────────────────────


class TestSendReport:
    async def test_report_routed(self) -> None:
        ch = FakeChannel()
        disp = NotificationDispatcher(channels=[ch], timezone="America/Detroit")
        result = await disp.send_report(_report())
        assert result.ok
        assert result.kind == "briefing"
        assert "ISSUES DETECTED" in ch.sent[0]

    async def test_all_failed_report_still_delivered(self) -> None:
        ch = FakeChannel()
        disp = NotificationDispatcher(channels=[ch])
        await disp.send_report(_report())
        assert "check failed: u" in ch.sent[0]


# ── Failure isolation ───────────────────────────────────────────


class TestErrorIsolation:
    async def test_failing_channel_does_not_block_others(self) -> None:
        bad, good = FakeChannel(fail=True), FakeChannel()
        disp = NotificationDispatcher(channels=[bad, good])
        result = await disp.send_alert(_alert())
        assert len(good.sent) == 1
        assert result.delivered == 1
        assert not result.ok
        assert result.errors and "ConnectionError" in result.errors[0]

    async def test_rejected_send_recorded(self) -> None:
        disp = NotificationDispatcher(channels=[FakeChannel(reject=True)])
        result = await disp.send_report(_report())
        assert result.delivered == 0
        assert result.errors == ["FakeChannel: rejected"]

    async def test_no_channels(self) -> None:
        disp = NotificationDispatcher()
        result = await disp.send_alert(_alert())
        assert result.channels == 0
        assert not result.ok


# ── Lifecycle ───────────────────────────────────────────────────


class TestClose:
    async def test_close_all_channels(self) -> None:
        ch1, ch2 = FakeChannel(), FakeChannel()
        disp = NotificationDispatcher(channels=[ch1, ch2])
        await disp.close()
        assert ch1.closed
        assert ch2.closed

    async def test_close_error_does_not_stop_others(self) -> None:
        bad, good = FakeChannel(fail=True), FakeChannel()
        disp = NotificationDispatcher(channels=[bad, good])
        await disp.close()
        assert good.closed
