"""Client adapters for the reminder server."""

from remindsync.infrastructure.remote.client import RemoteAPIClient
from remindsync.infrastructure.remote.device_registry import RemoteDeviceRegistry
from remindsync.infrastructure.remote.reminder_store import RemoteReminderStore

__all__ = ["RemoteAPIClient", "RemoteReminderStore", "RemoteDeviceRegistry"]
