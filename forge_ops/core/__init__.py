"""Core module — config, types, logging."""

from forge_ops.core.config import (
    ConfigError,
    Settings,
    get_settings,
    load_settings,
    missing_required,
    reset_settings,
)
from forge_ops.core.logging import setup_logging
from forge_ops.core.types import (
    CheckResult,
    CheckSource,
    EmailData,
    EmailResult,
    EndpointStatus,
    HealthStatus,
    RailwayData,
    RailwayResult,
    SentryData,
    SentryIssue,
    SentryResult,
    SilentShop,
    SupabaseData,
    SupabaseResult,
    UptimeData,
    UptimeResult,
)

__all__ = [
    "ConfigError",
    "CheckResult",
    "CheckSource",
    "EmailData",
    "EmailResult",
    "EndpointStatus",
    "HealthStatus",
    "RailwayData",
    "RailwayResult",
    "SentryData",
    "SentryIssue",
    "SentryResult",
    "Settings",
    "SilentShop",
    "SupabaseData",
    "SupabaseResult",
    "UptimeData",
    "UptimeResult",
    "get_settings",
    "load_settings",
    "missing_required",
    "reset_settings",
    "setup_logging",
]
