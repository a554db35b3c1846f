"""Notification gateway — renders briefings and alerts and delivers them best-effort."""

from __future__ import annotations

import datetime
from zoneinfo import ZoneInfo

import structlog

from forge_ops.monitor.channels import NotificationChannel
from forge_ops.monitor.formatters import format_alert, format_briefing
from forge_ops.monitor.types import Alert, BriefingReport, DeliveryResult

# Dedicated structured logger for everything sent out.
notification_logger = structlog.get_logger("notification_log")

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Routes briefings and alerts to notification channels.

    - Every outbound message is logged via *notification_logger*.
    - Delivery is attempted once per channel; failures are logged and
      summarised in the returned DeliveryResult, never raised or retried.
    """

    def __init__(
        self,
        channels: list[NotificationChannel] | None = None,
        timezone: str = "UTC",
    ) -> None:
        self._channels: list[NotificationChannel] = channels or []
        self._tz = ZoneInfo(timezone)

    async def send_report(self, report: BriefingReport) -> DeliveryResult:
        notification_logger.info(
            "briefing",
            overall_status=report.overall_status,
            report=report.model_dump(mode="json"),
        )
        try:
            text = format_briefing(report, self._tz)
        except Exception as exc:
            logger.exception("briefing_format_error")
            return DeliveryResult(kind="briefing", errors=[repr(exc)])
        result = await self._dispatch_to_channels("briefing", text)
        logger.info(
            "briefing_delivered" if result.ok else "briefing_delivery_incomplete",
            delivered=result.delivered,
            channels=result.channels,
            errors=result.errors,
        )
        return result

    async def send_alert(self, alert: Alert) -> DeliveryResult:
        notification_logger.info(
            "alert",
            severity=alert.severity.name,
            source=alert.source,
            message=alert.message,
            details=alert.details,
            action_url=alert.action_url,
        )
        try:
            text = format_alert(alert, self._tz, datetime.datetime.now(datetime.UTC))
        except Exception as exc:
            logger.exception("alert_format_error", source=alert.source)
            return DeliveryResult(kind="alert", errors=[repr(exc)])
        result = await self._dispatch_to_channels("alert", text)
        if not result.ok:
            logger.warning(
                "alert_delivery_incomplete",
                source=alert.source,
                delivered=result.delivered,
                channels=result.channels,
                errors=result.errors,
            )
        return result

    # ── Internal routing ────────────────────────────────────────

    async def _dispatch_to_channels(self, kind: str, text: str) -> DeliveryResult:
        result = DeliveryResult(kind=kind, channels=len(self._channels))
        for ch in self._channels:
            name = type(ch).__name__
            try:
                if await ch.send(text):
                    result.delivered += 1
                else:
                    result.errors.append(f"{name}: rejected")
            except Exception as exc:
                logger.exception("channel_dispatch_error", channel=name, kind=kind)
                result.errors.append(f"{name}: {exc!r}")
        return result

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        for ch in self._channels:
            try:
                await ch.close()
            except Exception:
                logger.exception("channel_close_error", channel=type(ch).__name__)
