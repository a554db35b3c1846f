"""Domain types for the briefing / alerting subsystem."""

from __future__ import annotations

import datetime
from enum import IntEnum

from pydantic import BaseModel, Field

from forge_ops.core.types import (
    CheckResult,
    CheckSource,
    EmailResult,
    HealthStatus,
    RailwayResult,
    SentryResult,
    SupabaseResult,
    UptimeResult,
    utcnow,
)


class Severity(IntEnum):
    """Alert severity — ordered so comparisons work naturally."""

    INFO = 1
    WARNING = 2
    CRITICAL = 3


class Alert(BaseModel):
    """A classified, severity-tagged notification. No identity beyond its fields."""

    severity: Severity
    source: CheckSource
    message: str
    details: str | None = None
    action_url: str | None = None


class BriefingReport(BaseModel):
    """Result of one full cycle — one envelope per check plus derived state."""

    timestamp: datetime.datetime = Field(default_factory=utcnow)
    overall_status: HealthStatus
    uptime: UptimeResult
    supabase: SupabaseResult
    sentry: SentryResult
    railway: RailwayResult
    email: EmailResult
    alerts: list[Alert] = Field(default_factory=list)

    def results(self) -> list[CheckResult]:  # type: ignore[type-arg]
        return [self.uptime, self.supabase, self.sentry, self.railway, self.email]


class DeliveryResult(BaseModel):
    """Outcome of a best-effort notification. Logged, never acted on."""

    kind: str
    channels: int = 0
    delivered: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.channels > 0 and self.delivered == self.channels
