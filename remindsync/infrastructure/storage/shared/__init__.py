"""Storage shared by the primary process and the notification extension."""

from remindsync.infrastructure.storage.shared.intent_queue import SharedIntentQueue
from remindsync.infrastructure.storage.shared.kv import SharedStorage
from remindsync.infrastructure.storage.shared.reminder_store import LocalReminderStore

__all__ = ["SharedStorage", "LocalReminderStore", "SharedIntentQueue"]
