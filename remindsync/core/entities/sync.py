"""Change classification and silent-push payload."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class SyncAction(str, Enum):
    """Kind of remote mutation."""

    CREATED = "created"
    DELETED = "deleted"
    COMPLETED = "completed"
    SNOOZED = "snoozed"
    UPDATED = "updated"


class PushPayload(BaseModel):
    """
    Device-to-device wake signal.

    Receivers treat it as a hint to re-read the active set, never as fact.
    """

    action: SyncAction
    reminder_id: str
    title: str | None = None
    trigger_date: datetime | None = None
    new_trigger_date: datetime | None = None

    def to_data(self) -> dict[str, str]:
        """Wire map; push data values must all be strings."""
        data = {"action": self.action.value, "reminderId": self.reminder_id}
        if self.title is not None:
            data["title"] = self.title
        if self.trigger_date is not None:
            data["triggerDate"] = self.trigger_date.isoformat()
        if self.new_trigger_date is not None:
            data["newTriggerDate"] = self.new_trigger_date.isoformat()
        return data

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "PushPayload":
        return cls(
            action=data["action"],
            reminder_id=data["reminderId"],
            title=data.get("title"),
            trigger_date=data.get("triggerDate"),
            new_trigger_date=data.get("newTriggerDate"),
        )
