"""
Parsing results.

``ReminderDraft`` is what the extractors produce from free text; AI
providers report through the tagged ``AIParseOutcome`` union so that any
failure shape is handled by a single fallback branch.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Literal, Union

from pydantic import BaseModel

from remindsync.core.entities.reminder import Reminder, RecurrenceRule, local_now


class TimeExpressionMatch(BaseModel):
    """A relative-time phrase resolved against a reference instant."""

    matched_text: str
    cleaned_text: str
    target_instant: datetime
    offset_seconds: float


class ReminderDraft(BaseModel):
    """Candidate reminder extracted from text, not yet stored."""

    title: str
    due_date: date | None = None
    due_time: time | None = None
    recurrence: RecurrenceRule | None = None
    resolved_instant: datetime | None = None
    source: Literal["local", "claude", "openai"] = "local"

    def compose_trigger(self, now: datetime | None = None) -> datetime:
        """
        Combine date and time into one instant.

        A resolved relative instant is used as-is. Otherwise date components
        come from ``due_date`` and hour/minute from ``due_time``, each
        defaulting to ``now``'s, with seconds zeroed. The result is in
        ``now``'s zone, the system zone by default.
        """
        if self.resolved_instant is not None:
            return self.resolved_instant
        now = now or local_now()
        day = self.due_date or now.date()
        clock = self.due_time or now.time()
        return datetime(
            day.year, day.month, day.day, clock.hour, clock.minute, tzinfo=now.tzinfo
        )

    def to_reminder(self, now: datetime | None = None, notes: str | None = None) -> Reminder:
        now = now or local_now()
        return Reminder(
            title=self.title,
            notes=notes,
            trigger_date=self.compose_trigger(now),
            recurrence=self.recurrence,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class AIParsed:
    """Provider answered with a well-formed reminder."""

    provider: str
    draft: ReminderDraft
    kind: Literal["parsed"] = field(default="parsed", init=False)


@dataclass(frozen=True)
class MalformedResponse:
    """Provider answered, but the body did not fit the expected schema."""

    provider: str
    reason: str
    raw: str = ""
    kind: Literal["malformed"] = field(default="malformed", init=False)


@dataclass(frozen=True)
class AIUnavailable:
    """Provider unreachable, not configured, non-200, or timed out."""

    provider: str
    reason: str
    kind: Literal["unavailable"] = field(default="unavailable", init=False)


AIParseOutcome = Union[AIParsed, MalformedResponse, AIUnavailable]
