"""Core interfaces (ports) for dependency injection."""

from remindsync.core.interfaces.notifications import (
    AlertRequest,
    INotificationCenter,
    IPushSender,
)
from remindsync.core.interfaces.parser import IAIReminderParser
from remindsync.core.interfaces.storage import (
    ActiveSubscription,
    IDeviceRegistry,
    IDeviceStore,
    IIntentQueue,
    IReminderDocumentStore,
    IReminderStore,
)

__all__ = [
    # Storage
    "ActiveSubscription",
    "IReminderStore",
    "IIntentQueue",
    "IReminderDocumentStore",
    "IDeviceStore",
    "IDeviceRegistry",
    # Notifications
    "AlertRequest",
    "INotificationCenter",
    "IPushSender",
    # Parsing
    "IAIReminderParser",
]
