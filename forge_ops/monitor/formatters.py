"""Pure functions that render briefings and alerts as Slack message text."""

from __future__ import annotations

import datetime
from zoneinfo import ZoneInfo

from forge_ops.core.types import CheckResult, HealthStatus
from forge_ops.monitor.types import Alert, BriefingReport, Severity

# ── Emoji mappings ──────────────────────────────────────────────

_OVERALL_EMOJI: dict[HealthStatus, str] = {
    HealthStatus.HEALTHY: "🟢",
    HealthStatus.DEGRADED: "🟡",
    HealthStatus.DOWN: "🔴",
    HealthStatus.UNKNOWN: "⚪",
}

_ITEM_EMOJI: dict[HealthStatus, str] = {
    HealthStatus.HEALTHY: "✅",
    HealthStatus.DEGRADED: "⚠️",
    HealthStatus.DOWN: "🔴",
    HealthStatus.UNKNOWN: "❓",
}

_SEVERITY_EMOJI: dict[Severity, str] = {
    Severity.INFO: "ℹ️",
    Severity.WARNING: "⚠️",
    Severity.CRITICAL: "🔴",
}


def format_health_item(name: str, status: HealthStatus, details: str | None = None) -> str:
    line = f"{_ITEM_EMOJI.get(status, '❓')} {name}"
    if details:
        line += f" — {details}"
    return line


def _failed_item(name: str, result: CheckResult) -> str:  # type: ignore[type-arg]
    return format_health_item(name, HealthStatus.UNKNOWN, f"check failed: {result.failure_reason}")


def _local(ts: datetime.datetime, tz: ZoneInfo) -> datetime.datetime:
    return ts.astimezone(tz)


# ── Briefing ────────────────────────────────────────────────────


def format_briefing(report: BriefingReport, tz: ZoneInfo) -> str:
    """Render the daily briefing. Failed checks are shown inline with their reason."""
    emoji = _OVERALL_EMOJI.get(report.overall_status, "⚪")
    headline = (
        "ALL SYSTEMS GO"
        if report.overall_status == HealthStatus.HEALTHY
        else "ISSUES DETECTED"
    )
    local = _local(report.timestamp, tz)
    lines = [
        f"{emoji} CRIMSON FORGE — {headline}",
        f"{local:%a, %b} {local.day} · {local:%I:%M %p %Z}",
        "",
        "*INFRASTRUCTURE*",
    ]

    if report.uptime.ok:
        for endpoint in report.uptime.payload.endpoints:
            details = (
                f"{endpoint.response_ms}ms"
                if endpoint.response_ms is not None
                else "No response"
            )
            if endpoint.status_code is not None and endpoint.status != HealthStatus.HEALTHY:
                details += f" (HTTP {endpoint.status_code})"
            lines.append(format_health_item(endpoint.name or endpoint.url, endpoint.status, details))
    else:
        lines.append(_failed_item("Uptime", report.uptime))

    if report.railway.ok:
        lines.append(format_health_item(
            "Railway API",
            report.railway.payload.status,
            report.railway.payload.latest_deployment_status,
        ))
    else:
        lines.append(_failed_item("Railway API", report.railway))

    supabase = report.supabase
    if supabase.ok:
        lines.append(format_health_item("Supabase", supabase.payload.connection_status))
    else:
        lines.append(_failed_item("Supabase", supabase))

    lines += ["", "*ACTIVITY (last 24h)*"]
    if supabase.ok and supabase.payload.connection_status == HealthStatus.HEALTHY:
        data = supabase.payload
        lines.append(f"🏪 {data.active_shops_24h} of {data.total_shops} shops active")
        lines.append(f"🎫 {data.tickets_created_24h} tickets created")
        lines.append(f"🤖 {data.ai_sessions_24h} AI sessions")
    else:
        lines.append("_Activity data unavailable_")

    if supabase.ok and supabase.payload.silent_shops:
        lines += ["", "*SHOPS TO WATCH* 👀"]
        for shop in supabase.payload.silent_shops:
            if shop.last_activity_at is not None:
                last_local = _local(shop.last_activity_at, tz)
                last = f"{last_local:%b} {last_local.day}"
            else:
                last = "never"
            silent_for = (
                f"{shop.days_silent} days silent"
                if shop.days_silent is not None
                else "no activity recorded"
            )
            lines.append(f"{shop.shop_name or shop.shop_id} — {silent_for} (last: {last})")

    lines += ["", "*SUPPORT*"]
    if report.email.ok:
        lines.append(f"📬 {report.email.payload.unread_count} unread emails")
    else:
        lines.append(f"⚠️ Email check unavailable — {report.email.failure_reason}")

    lines += ["", "*ERRORS*"]
    sentry = report.sentry
    if sentry.ok:
        if sentry.payload.new_issue_count == 0:
            lines.append("✅ No new Sentry issues")
        else:
            lines.append(f"⚠️ {sentry.payload.new_issue_count} new issues since yesterday")
        lines.append(f"{sentry.payload.unresolved_count} unresolved total")
        for issue in sentry.payload.recent_issues:
            lines.append(f"• [{issue.level}] {issue.title} ({issue.count}×)")
    else:
        lines.append(f"⚠️ Sentry check unavailable — {sentry.failure_reason}")

    if report.alerts:
        lines += ["", "*ALERTS*"]
        for alert in report.alerts:
            line = f"{_SEVERITY_EMOJI.get(alert.severity, '⚠️')} {alert.message}"
            if alert.details:
                line += f" — {alert.details}"
            if alert.action_url:
                line += f" <{alert.action_url}|view>"
            lines.append(line)

    return "\n".join(lines)


# ── Alert ───────────────────────────────────────────────────────


def format_alert(
    alert: Alert,
    tz: ZoneInfo,
    detected_at: datetime.datetime | None = None,
) -> str:
    """Render an immediate alert."""
    detected = _local(detected_at or datetime.datetime.now(datetime.UTC), tz)
    lines = [
        f"{_SEVERITY_EMOJI.get(alert.severity, '⚠️')} ALERT — {alert.source.value.upper()} ISSUE",
        f"Detected: {detected:%I:%M %p %Z}",
        "",
        alert.message,
    ]
    if alert.details:
        lines += ["", alert.details]
    if alert.action_url:
        lines += ["", f"View: {alert.action_url}"]
    return "\n".join(lines)
