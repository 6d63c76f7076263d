"""
Prompt and response handling for AI reminder parsing.

The model is asked for one JSON object. Its reply is cut from the first
"{" to the last "}", decoded, and validated against a strict schema; any
deviation yields ``MalformedResponse``.
"""

import json
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from remindsync.core.entities.parsing import (
    AIParsed,
    AIParseOutcome,
    MalformedResponse,
    ReminderDraft,
)
from remindsync.core.entities.reminder import RecurrenceRule, RecurrenceType, RecurrenceUnit
from remindsync.core.services.local_extractor import (
    TITLE_MAX_LENGTH,
    WEEKDAY_NAMES,
    extract_title,
)

PROMPT_TEMPLATE = """You turn a reminder request into JSON.
Today's date: {today} ({weekday})
Now: {now}
Input: "{text}"

Reply with exactly one JSON object and nothing else:
{{"title": string, "date": "YYYY-MM-DD" or null, "time": "HH:mm" or null, \
"recurrence_type": "none" | "daily" | "weekly" | "custom", \
"recurrence_interval": number or null, \
"recurrence_unit": "hour" | "day" | "week" | "month" or null, \
"days_of_week": [weekday names] or null}}
The title is the task only, without date or time words."""


def build_prompt(text: str, now: datetime) -> str:
    return PROMPT_TEMPLATE.format(
        today=now.date().isoformat(),
        weekday=now.strftime("%A"),
        now=now.strftime("%H:%M"),
        text=text.replace('"', "'"),
    )


class AIReminderFields(BaseModel):
    """Expected reply shape."""

    model_config = ConfigDict(strict=True, extra="ignore")

    title: str
    date: str | None
    time: str | None
    recurrence_type: Literal["none", "daily", "weekly", "custom"]
    recurrence_interval: int | None = Field(default=None, ge=1)
    recurrence_unit: Literal["hour", "day", "week", "month"] | None = None
    days_of_week: list[str] | None = None


def extract_json_object(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _recurrence(fields: AIReminderFields) -> RecurrenceRule | None:
    if fields.recurrence_type == "none":
        return None
    days = None
    if fields.days_of_week:
        days = []
        for name in fields.days_of_week:
            key = name.strip().lower()
            matches = [i for i, day in enumerate(WEEKDAY_NAMES, start=1) if day.startswith(key[:3])]
            if len(key) < 3 or len(matches) != 1:
                raise ValueError(f"unknown weekday: {name}")
            days.append(matches[0])
    return RecurrenceRule(
        type=RecurrenceType(fields.recurrence_type),
        interval=fields.recurrence_interval or 1,
        unit=RecurrenceUnit(fields.recurrence_unit) if fields.recurrence_unit else None,
        days_of_week=days,
    )


def to_draft(fields: AIReminderFields, raw_text: str, provider: str) -> ReminderDraft:
    """
    Raises:
        ValueError: If a date, time, weekday or rule value is unusable
    """
    title = " ".join(fields.title.split())
    if not title:
        title = extract_title("", raw_input=raw_text)
    return ReminderDraft(
        title=title[:TITLE_MAX_LENGTH],
        due_date=date.fromisoformat(fields.date) if fields.date else None,
        due_time=datetime.strptime(fields.time, "%H:%M").time() if fields.time else None,
        recurrence=_recurrence(fields),
        source=provider,
    )


def interpret_response(provider: str, body: str, raw_text: str) -> AIParseOutcome:
    """Model reply text to a tagged outcome."""
    candidate = extract_json_object(body)
    if candidate is None:
        return MalformedResponse(provider=provider, reason="no JSON object", raw=body[:200])
    try:
        fields = AIReminderFields.model_validate(json.loads(candidate))
        draft = to_draft(fields, raw_text, provider)
    except json.JSONDecodeError as e:
        return MalformedResponse(provider=provider, reason=f"invalid JSON: {e}", raw=body[:200])
    except ValidationError as e:
        return MalformedResponse(
            provider=provider,
            reason=f"schema mismatch: {e.error_count()} errors",
            raw=body[:200],
        )
    except ValueError as e:
        return MalformedResponse(provider=provider, reason=str(e), raw=body[:200])
    return AIParsed(provider=provider, draft=draft)
