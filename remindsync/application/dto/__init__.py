"""Data transfer objects for the server API."""

from remindsync.application.dto.requests import (
    CompleteReminderRequest,
    CreateReminderRequest,
    HeartbeatRequest,
    PatchReminderRequest,
    RegisterDeviceRequest,
    ReplaceReminderRequest,
    SnoozeReminderRequest,
)
from remindsync.application.dto.responses import (
    DeviceResponse,
    ErrorResponse,
    HealthResponse,
    ReminderResponse,
)

__all__ = [
    # Requests
    "CreateReminderRequest",
    "ReplaceReminderRequest",
    "PatchReminderRequest",
    "CompleteReminderRequest",
    "SnoozeReminderRequest",
    "RegisterDeviceRequest",
    "HeartbeatRequest",
    # Responses
    "ReminderResponse",
    "DeviceResponse",
    "HealthResponse",
    "ErrorResponse",
]
