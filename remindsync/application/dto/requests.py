"""Request DTOs for API endpoints.

Pydantic v2 models for request validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from remindsync.core.entities.reminder import RecurrenceRule, ReminderStatus


# --- Reminders ---


class CreateReminderRequest(BaseModel):
    """Request to create a reminder document."""

    id: str | None = Field(default=None, description="Client-generated id; assigned if omitted")
    title: str = Field(..., min_length=1, description="Reminder title")
    notes: str | None = Field(default=None, description="Free-form notes")
    trigger_date: datetime = Field(..., description="Next scheduled fire instant")
    recurrence: RecurrenceRule | None = Field(default=None, description="Repeat pattern")
    status: ReminderStatus = Field(default=ReminderStatus.ACTIVE)
    snoozed_until: datetime | None = Field(default=None, description="Snooze override")
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)


class ReplaceReminderRequest(BaseModel):
    """Full replacement of a reminder document."""

    title: str = Field(..., min_length=1)
    notes: str | None = None
    trigger_date: datetime
    recurrence: RecurrenceRule | None = None
    status: ReminderStatus = ReminderStatus.ACTIVE
    snoozed_until: datetime | None = None
    created_at: datetime | None = None


class PatchReminderRequest(BaseModel):
    """
    Partial update of a reminder document.

    Only fields present in the body are applied, so ``null`` clears a
    nullable field while an absent field is left alone.
    """

    title: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    trigger_date: datetime | None = None
    recurrence: RecurrenceRule | None = None
    status: ReminderStatus | None = None
    snoozed_until: datetime | None = None


class CompleteReminderRequest(BaseModel):
    """Completion as of ``now`` (server clock if omitted)."""

    now: datetime | None = None


class SnoozeReminderRequest(BaseModel):
    """Snooze until an absolute instant, or for a number of minutes."""

    until: datetime | None = None
    minutes: int | None = Field(default=None, ge=1)


# --- Devices ---


class RegisterDeviceRequest(BaseModel):
    """Register or refresh a device for silent pushes."""

    fcm_token: str = Field(..., min_length=1, description="Push token")
    platform: str = Field(default="ios")
    device_name: str | None = None
    app_version: str | None = None
    last_active_at: datetime | None = None


class HeartbeatRequest(BaseModel):
    """Device activity heartbeat."""

    at: datetime | None = None

