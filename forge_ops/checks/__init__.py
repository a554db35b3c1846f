"""Health checks — one per monitored integration."""

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.inbox import InboxCheck
from forge_ops.checks.railway import RailwayCheck
from forge_ops.checks.sentry import SentryCheck
from forge_ops.checks.supabase import SupabaseCheck
from forge_ops.checks.uptime import UptimeCheck

__all__ = [
    "BaseCheck",
    "InboxCheck",
    "RailwayCheck",
    "SentryCheck",
    "SupabaseCheck",
    "UptimeCheck",
]
