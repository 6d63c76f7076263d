"""Core domain services."""

from remindsync.core.services.device_sync import DeviceSyncService
from remindsync.core.services.extension_bridge import (
    DrainReport,
    ExtensionBridge,
    IntentReplayer,
    clamp_snooze_minutes,
)
from remindsync.core.services.local_extractor import parse_locally
from remindsync.core.services.notification_scheduler import AlertState, NotificationScheduler
from remindsync.core.services.recurrence import next_trigger
from remindsync.core.services.reminder_lifecycle import apply_completion, apply_snooze
from remindsync.core.services.reminder_parsing import ReminderParsingService
from remindsync.core.services.sync_fanout import FanoutReport, SyncFanout, classify
from remindsync.core.services.time_expression import TimeExpressionParser

__all__ = [
    "TimeExpressionParser",
    "parse_locally",
    "next_trigger",
    "apply_completion",
    "apply_snooze",
    "AlertState",
    "NotificationScheduler",
    "ExtensionBridge",
    "IntentReplayer",
    "DrainReport",
    "clamp_snooze_minutes",
    "SyncFanout",
    "FanoutReport",
    "classify",
    "ReminderParsingService",
    "DeviceSyncService",
]
