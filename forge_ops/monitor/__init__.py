"""Aggregation, alert classification, scheduling and notification subsystem."""

from forge_ops.monitor.aggregator import BriefingAggregator
from forge_ops.monitor.channels import NotificationChannel, SlackChannel
from forge_ops.monitor.classifier import AlertClassifier
from forge_ops.monitor.dispatcher import NotificationDispatcher
from forge_ops.monitor.factory import MonitorStack, create_monitor_stack
from forge_ops.monitor.formatters import format_alert, format_briefing
from forge_ops.monitor.scheduler import CycleScheduler
from forge_ops.monitor.sentinel import QuickSentinel
from forge_ops.monitor.status import derive_overall_status
from forge_ops.monitor.types import Alert, BriefingReport, DeliveryResult, Severity

__all__ = [
    "Alert",
    "AlertClassifier",
    "BriefingAggregator",
    "BriefingReport",
    "CycleScheduler",
    "DeliveryResult",
    "MonitorStack",
    "NotificationChannel",
    "NotificationDispatcher",
    "QuickSentinel",
    "Severity",
    "SlackChannel",
    "create_monitor_stack",
    "derive_overall_status",
    "format_alert",
    "format_briefing",
]
