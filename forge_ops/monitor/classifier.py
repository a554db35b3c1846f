"""Pure functions that turn check results into alerts."""

from __future__ import annotations

from forge_ops.core.types import (
    CheckSource,
    EmailResult,
    HealthStatus,
    RailwayResult,
    SentryResult,
    SupabaseResult,
    UptimeResult,
)
from forge_ops.monitor.types import Alert, Severity


class AlertClassifier:
    """Maps check results to alerts. Holds only immutable link/threshold data.

    Args:
        issues_url: Link attached to new-issue warnings.
        dashboard_url: Link attached to deployment-down alerts.
        silent_threshold_days: Used in the silent-shop message.
    """

    def __init__(
        self,
        issues_url: str = "",
        dashboard_url: str = "",
        silent_threshold_days: int = 3,
    ) -> None:
        self._issues_url = issues_url
        self._dashboard_url = dashboard_url
        self._silent_threshold_days = silent_threshold_days

    # ── Full cycle ──────────────────────────────────────────────

    def classify(
        self,
        uptime: UptimeResult,
        supabase: SupabaseResult,
        sentry: SentryResult,
        railway: RailwayResult,
        email: EmailResult,
    ) -> list[Alert]:
        """Alerts for the daily briefing.

        Every rule is evaluated independently. A failed check is shown
        inline in the briefing and raises no alert here. The inbox result
        is informational and never alerts.
        """
        alerts: list[Alert] = []

        uptime_alert = self._uptime_down(uptime)
        if uptime_alert is not None:
            alerts.append(uptime_alert)

        railway_alert = self._railway_down(railway)
        if railway_alert is not None:
            alerts.append(railway_alert)

        if sentry.ok and sentry.payload.new_issue_count > 0:
            count = sentry.payload.new_issue_count
            alerts.append(Alert(
                severity=Severity.WARNING,
                source=CheckSource.SENTRY,
                message=f"{count} new error issues detected",
                details=f"{sentry.payload.unresolved_count} unresolved total",
                action_url=self._issues_url or None,
            ))

        if supabase.ok and supabase.payload.silent_shops:
            count = len(supabase.payload.silent_shops)
            alerts.append(Alert(
                severity=Severity.INFO,
                source=CheckSource.SUPABASE,
                message=f"{count} shops inactive for {self._silent_threshold_days}+ days",
            ))

        return alerts

    # ── Quick cycle ─────────────────────────────────────────────

    def classify_outages(
        self,
        uptime: UptimeResult,
        railway: RailwayResult,
    ) -> list[Alert]:
        """Alerts for the frequent down-only check.

        A confirmed outage is CRITICAL. A check that could not run is a
        WARNING: health that cannot be verified is never reported as fine.
        """
        alerts: list[Alert] = []

        if uptime.ok:
            uptime_alert = self._uptime_down(uptime)
            if uptime_alert is not None:
                alerts.append(uptime_alert)
        else:
            alerts.append(_unverified(uptime.source, uptime.failure_reason))

        if railway.ok:
            railway_alert = self._railway_down(railway)
            if railway_alert is not None:
                alerts.append(railway_alert)
        else:
            alerts.append(_unverified(railway.source, railway.failure_reason))

        return alerts

    # ── Shared rules ────────────────────────────────────────────

    def _uptime_down(self, uptime: UptimeResult) -> Alert | None:
        if not uptime.ok:
            return None
        down = uptime.payload.down_endpoints
        if not down:
            return None
        return Alert(
            severity=Severity.CRITICAL,
            source=CheckSource.UPTIME,
            message="Services are DOWN",
            details=", ".join(e.url for e in down),
        )

    def _railway_down(self, railway: RailwayResult) -> Alert | None:
        if not railway.ok or railway.payload.status != HealthStatus.DOWN:
            return None
        details = None
        if railway.payload.latest_deployment_status:
            details = f"Latest deployment: {railway.payload.latest_deployment_status}"
        return Alert(
            severity=Severity.CRITICAL,
            source=CheckSource.RAILWAY,
            message="Railway deployment is DOWN",
            details=details,
            action_url=self._dashboard_url or None,
        )


def _unverified(source: CheckSource, reason: str | None) -> Alert:
    return Alert(
        severity=Severity.WARNING,
        source=source,
        message=f"{source.value.capitalize()} check could not run",
        details=reason,
    )
