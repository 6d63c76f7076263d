"""Pending actions recorded by the notification extension."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from remindsync.core.entities.reminder import ensure_aware, utc_now


class ExtensionActionType(str, Enum):
    """Kind of state change made from a delivered alert."""

    SNOOZE = "snooze"
    COMPLETE = "complete"


class PendingExtensionAction(BaseModel):
    """
    A state change awaiting replay against the authoritative backend.

    ``anchor_trigger`` is the reminder's trigger date as the extension saw
    it; replay skips a completion whose anchor no longer matches, so a
    retried replay cannot advance a recurring reminder twice.
    """

    intent_id: str = Field(default_factory=lambda: str(uuid4()))
    type: ExtensionActionType
    reminder_id: str
    snooze_date: datetime | None = None
    anchor_trigger: datetime | None = None
    recorded_at: datetime = Field(default_factory=utc_now)

    @field_validator("snooze_date", "anchor_trigger", "recorded_at")
    @classmethod
    def make_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @model_validator(mode="after")
    def check_snooze_date(self) -> "PendingExtensionAction":
        if self.type == ExtensionActionType.SNOOZE and self.snooze_date is None:
            raise ValueError("snooze action requires snooze_date")
        return self
