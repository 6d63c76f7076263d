"""
Reminder entities.

A reminder is due at its effective instant: ``snoozed_until`` when set,
otherwise ``trigger_date``. All instants are timezone-aware; naive values
are read as UTC.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


def utc_now() -> datetime:
    """Current instant, timezone-aware."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Current instant in the system time zone, for reading wall-clock phrases."""
    return datetime.now().astimezone()


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ReminderStatus(str, Enum):
    """Reminder lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"


class RecurrenceType(str, Enum):
    """Recurrence pattern."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class RecurrenceUnit(str, Enum):
    """Period unit for custom recurrence."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class RecurrenceRule(BaseModel):
    """
    Repeat pattern of a reminder.

    ``days_of_week`` uses 1=Sunday through 7=Saturday and is advisory
    (display and filtering). ``time_range_start``/``time_range_end`` fence
    hourly reminders to active hours; enforcement is left to the UI.
    ``based_on_completion`` is persisted but advancement always starts from
    the prior trigger date.
    """

    type: RecurrenceType
    interval: int = Field(default=1, ge=1)
    unit: RecurrenceUnit | None = None
    days_of_week: list[int] | None = None
    time_range_start: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    time_range_end: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    based_on_completion: bool = False

    @field_validator("days_of_week")
    @classmethod
    def check_weekdays(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        for day in v:
            if not 1 <= day <= 7:
                raise ValueError(f"weekday out of range 1..7: {day}")
        return sorted(set(v))

    @model_validator(mode="after")
    def check_unit(self) -> "RecurrenceRule":
        if self.type == RecurrenceType.CUSTOM and self.unit is None:
            raise ValueError("custom recurrence requires a unit")
        return self

    @property
    def period_unit(self) -> RecurrenceUnit | None:
        """Unit of one period; None for one-shot rules."""
        if self.type == RecurrenceType.DAILY:
            return RecurrenceUnit.DAY
        if self.type == RecurrenceType.WEEKLY:
            return RecurrenceUnit.WEEK
        if self.type == RecurrenceType.CUSTOM:
            return self.unit
        return None

    @property
    def is_recurring(self) -> bool:
        return self.type != RecurrenceType.NONE


class Reminder(BaseModel):
    """A task the user wants to be reminded of at a specific moment."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(min_length=1)
    notes: str | None = None
    trigger_date: datetime
    recurrence: RecurrenceRule | None = None
    status: ReminderStatus = ReminderStatus.ACTIVE
    snoozed_until: datetime | None = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("trigger_date", "snoozed_until", "created_at", "updated_at")
    @classmethod
    def make_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @field_validator("recurrence")
    @classmethod
    def drop_none_rule(cls, v: RecurrenceRule | None) -> RecurrenceRule | None:
        if v is not None and not v.is_recurring:
            return None
        return v

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def is_active(self) -> bool:
        return self.status == ReminderStatus.ACTIVE

    @property
    def effective_instant(self) -> datetime:
        """The currently-due instant."""
        return self.snoozed_until if self.snoozed_until is not None else self.trigger_date

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Active and due strictly before ``now``."""
        now = now or utc_now()
        return self.is_active and self.effective_instant < now


def sort_by_effective_instant(reminders: list[Reminder]) -> list[Reminder]:
    """Order reminders by effective instant ascending, ties by id."""
    return sorted(reminders, key=lambda r: (r.effective_instant, r.id))
