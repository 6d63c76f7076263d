"""
Use cases.

Server-side document and device management, and the client session.
"""

from remindsync.application.use_cases.device_registry import DeviceRegistryUseCase
from remindsync.application.use_cases.reminder_documents import (
    ReminderDocumentsUseCase,
    WriteResult,
)
from remindsync.application.use_cases.reminder_session import ReminderSession

__all__ = [
    "ReminderDocumentsUseCase",
    "WriteResult",
    "DeviceRegistryUseCase",
    "ReminderSession",
]
