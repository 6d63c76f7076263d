"""Core domain entities."""

from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.extension import ExtensionActionType, PendingExtensionAction
from remindsync.core.entities.parsing import (
    AIParsed,
    AIParseOutcome,
    AIUnavailable,
    MalformedResponse,
    ReminderDraft,
    TimeExpressionMatch,
)
from remindsync.core.entities.reminder import (
    RecurrenceRule,
    RecurrenceType,
    RecurrenceUnit,
    Reminder,
    ReminderStatus,
    sort_by_effective_instant,
    local_now,
    utc_now,
)
from remindsync.core.entities.sync import PushPayload, SyncAction

__all__ = [
    # Reminder
    "Reminder",
    "ReminderStatus",
    "RecurrenceRule",
    "RecurrenceType",
    "RecurrenceUnit",
    "sort_by_effective_instant",
    "local_now",
    "utc_now",
    # Device
    "DeviceRegistration",
    # Extension
    "ExtensionActionType",
    "PendingExtensionAction",
    # Sync
    "PushPayload",
    "SyncAction",
    # Parsing
    "ReminderDraft",
    "TimeExpressionMatch",
    "AIParsed",
    "MalformedResponse",
    "AIUnavailable",
    "AIParseOutcome",
]
