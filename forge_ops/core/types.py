"""Domain types for health checks — payloads and the result envelope."""

from __future__ import annotations

import datetime
from enum import StrEnum
from typing import Generic, Self, TypeVar

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class HealthStatus(StrEnum):
    """Health classification of a monitored target."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class CheckSource(StrEnum):
    """Stable identifier of each check."""

    UPTIME = "uptime"
    SUPABASE = "supabase"
    SENTRY = "sentry"
    RAILWAY = "railway"
    EMAIL = "email"


# ── Uptime ──────────────────────────────────────────────────────


class EndpointStatus(BaseModel):
    """Outcome of probing one URL."""

    name: str = ""
    url: str
    status: HealthStatus
    response_ms: int | None = None
    status_code: int | None = None


class UptimeData(BaseModel):
    endpoints: list[EndpointStatus] = Field(default_factory=list)

    @property
    def down_endpoints(self) -> list[EndpointStatus]:
        return [e for e in self.endpoints if e.status == HealthStatus.DOWN]

    @property
    def status(self) -> HealthStatus:
        """Worst endpoint status; UNKNOWN when nothing was probed."""
        if not self.endpoints:
            return HealthStatus.UNKNOWN
        statuses = {e.status for e in self.endpoints}
        if HealthStatus.DOWN in statuses:
            return HealthStatus.DOWN
        if statuses != {HealthStatus.HEALTHY}:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY


# ── Supabase (shop activity) ────────────────────────────────────


class SilentShop(BaseModel):
    """A shop with no recorded activity beyond the threshold."""

    shop_id: str
    shop_name: str = ""
    last_activity_at: datetime.datetime | None = None
    days_silent: int | None = None


class SupabaseData(BaseModel):
    connection_status: HealthStatus = HealthStatus.UNKNOWN
    total_shops: int = 0
    active_shops_24h: int = 0
    tickets_created_24h: int = 0
    ai_sessions_24h: int = 0
    silent_shops: list[SilentShop] = Field(default_factory=list)


# ── Sentry ──────────────────────────────────────────────────────


class SentryIssue(BaseModel):
    id: str
    title: str = ""
    level: str = "error"
    count: int = 0
    first_seen: str = ""
    last_seen: str = ""
    url: str = ""


class SentryData(BaseModel):
    new_issue_count: int = 0
    unresolved_count: int = 0
    recent_issues: list[SentryIssue] = Field(default_factory=list)


# ── Railway ─────────────────────────────────────────────────────


class RailwayData(BaseModel):
    status: HealthStatus = HealthStatus.UNKNOWN
    latest_deployment_status: str | None = None
    latest_deployment_at: str | None = None


# ── Email ───────────────────────────────────────────────────────


class EmailData(BaseModel):
    status: HealthStatus = HealthStatus.UNKNOWN
    unread_count: int = 0
    last_check_at: datetime.datetime = Field(default_factory=utcnow)


# ── Result envelope ─────────────────────────────────────────────

P = TypeVar("P", bound=BaseModel)


class CheckResult(BaseModel, Generic[P]):
    """Uniform envelope returned by every check.

    ``ok`` says whether the check itself produced an answer; the payload's
    own health status is a separate axis. ``failure_reason`` is set if and
    only if ``ok`` is False.
    """

    source: CheckSource
    ok: bool
    observed_at: datetime.datetime = Field(default_factory=utcnow)
    payload: P
    failure_reason: str | None = None

    @model_validator(mode="after")
    def _reason_matches_ok(self) -> Self:
        if self.ok and self.failure_reason is not None:
            raise ValueError("failure_reason must be absent when ok is True")
        if not self.ok and not self.failure_reason:
            raise ValueError("failure_reason is required when ok is False")
        return self

    @classmethod
    def success(cls, source: CheckSource, payload: P) -> Self:
        return cls(source=source, ok=True, payload=payload)

    @classmethod
    def failure(cls, source: CheckSource, payload: P, reason: str) -> Self:
        return cls(
            source=source,
            ok=False,
            payload=payload,
            failure_reason=reason or "unknown error",
        )


UptimeResult = CheckResult[UptimeData]
SupabaseResult = CheckResult[SupabaseData]
SentryResult = CheckResult[SentryData]
RailwayResult = CheckResult[RailwayData]
EmailResult = CheckResult[EmailData]
