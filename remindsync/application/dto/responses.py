"""Response DTOs for API endpoints.

Reminder responses carry the full document so clients can validate them
straight back into the entity.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.reminder import (
    RecurrenceRule,
    Reminder,
    ReminderStatus,
    utc_now,
)


class ReminderResponse(BaseModel):
    """One reminder document."""

    id: str
    title: str
    notes: str | None = None
    trigger_date: datetime
    recurrence: RecurrenceRule | None = None
    status: ReminderStatus
    snoozed_until: datetime | None = None
    created_at: datetime
    updated_at: datetime
    is_overdue: bool = Field(default=False, description="Active and past its effective instant")

    @classmethod
    def from_entity(cls, reminder: Reminder, now: datetime | None = None) -> "ReminderResponse":
        return cls(
            **reminder.model_dump(),
            is_overdue=reminder.is_overdue(now),
        )


class DeviceResponse(BaseModel):
    """One registered device."""

    device_id: str
    fcm_token: str
    platform: str
    device_name: str | None = None
    app_version: str | None = None
    last_active_at: datetime

    @classmethod
    def from_entity(cls, device: DeviceRegistration) -> "DeviceResponse":
        return cls(**device.model_dump())


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    database: bool = Field(default=True, description="Server database reachable")
    push_enabled: bool = Field(default=False, description="FCM credentials configured")


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error: machine-readable code (e.g. REMINDER_NOT_FOUND)
    - message: human-readable description
    - details: structured context from the exception
    - hint: suggested recovery action
    """

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    details: dict[str, Any] = Field(default_factory=dict)
    hint: str | None = Field(default=None, description="Suggested recovery action")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=utc_now)
