"""Overall status derivation for the daily briefing."""

from __future__ import annotations

from forge_ops.core.types import (
    HealthStatus,
    RailwayResult,
    SupabaseResult,
    UptimeResult,
)


def contributing_statuses(
    uptime: UptimeResult,
    supabase: SupabaseResult,
    railway: RailwayResult,
) -> list[HealthStatus]:
    """Health of the status-bearing checks that produced a determinate answer.

    A failed check and a check reporting UNKNOWN are left out. Sentry and
    the inbox are informational and never contribute.
    """
    pairs = [
        (uptime.ok, uptime.payload.status),
        (supabase.ok, supabase.payload.connection_status),
        (railway.ok, railway.payload.status),
    ]
    return [status for ok, status in pairs if ok and status != HealthStatus.UNKNOWN]


def derive_overall_status(
    uptime: UptimeResult,
    supabase: SupabaseResult,
    railway: RailwayResult,
) -> HealthStatus:
    """Collapse the contributing checks into one status.

    Precedence is DOWN > DEGRADED > HEALTHY over the determinate sources.
    UNKNOWN only when no source could be determined.
    """
    statuses = contributing_statuses(uptime, supabase, railway)

    if not statuses:
        return HealthStatus.UNKNOWN
    if HealthStatus.DOWN in statuses:
        return HealthStatus.DOWN
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
