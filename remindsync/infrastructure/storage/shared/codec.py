"""
Shared-storage record format.

Reminders are stored as a JSON array of flat camelCase records with
instants as epoch seconds; pending intents as a second JSON array. Both
surfaces read and write exactly this shape.
"""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import NAMESPACE_URL, uuid5

from pydantic import ValidationError

from remindsync.config import get_logger
from remindsync.core.entities.extension import PendingExtensionAction
from remindsync.core.entities.reminder import RecurrenceRule, Reminder
from remindsync.core.exceptions import InvalidDataError

logger = get_logger(__name__)


def _to_epoch(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def _from_epoch(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise InvalidDataError(f"instant is not a number: {value!r}")
    return datetime.fromtimestamp(value, tz=timezone.utc)


def reminder_to_record(reminder: Reminder) -> dict[str, Any]:
    rule = reminder.recurrence
    return {
        "id": reminder.id,
        "title": reminder.title,
        "notes": reminder.notes,
        "triggerDate": _to_epoch(reminder.trigger_date),
        "recurrenceType": rule.type.value if rule else None,
        "recurrenceInterval": rule.interval if rule else None,
        "recurrenceUnit": rule.unit.value if rule and rule.unit else None,
        "recurrenceDaysOfWeek": rule.days_of_week if rule else None,
        "recurrenceTimeRangeStart": rule.time_range_start if rule else None,
        "recurrenceTimeRangeEnd": rule.time_range_end if rule else None,
        "recurrenceBasedOnCompletion": rule.based_on_completion if rule else None,
        "status": reminder.status.value,
        "snoozedUntil": _to_epoch(reminder.snoozed_until),
        "createdAt": _to_epoch(reminder.created_at),
        "updatedAt": _to_epoch(reminder.updated_at),
    }


def reminder_from_record(record: Any) -> Reminder:
    """
    Raises:
        InvalidDataError: If the record does not describe a reminder
    """
    if not isinstance(record, dict):
        raise InvalidDataError("record is not an object")
    record_id = record.get("id")
    try:
        rule = None
        if record.get("recurrenceType") not in (None, "none"):
            rule = RecurrenceRule(
                type=record["recurrenceType"],
                interval=record.get("recurrenceInterval") or 1,
                unit=record.get("recurrenceUnit"),
                days_of_week=record.get("recurrenceDaysOfWeek"),
                time_range_start=record.get("recurrenceTimeRangeStart"),
                time_range_end=record.get("recurrenceTimeRangeEnd"),
                based_on_completion=bool(record.get("recurrenceBasedOnCompletion")),
            )
        return Reminder(
            id=record["id"],
            title=record["title"],
            notes=record.get("notes"),
            trigger_date=_from_epoch(record["triggerDate"]),
            recurrence=rule,
            status=record.get("status", "active"),
            snoozed_until=_from_epoch(record.get("snoozedUntil")),
            created_at=_from_epoch(record.get("createdAt")) or _from_epoch(record["triggerDate"]),
            updated_at=_from_epoch(record.get("updatedAt")) or _from_epoch(record["triggerDate"]),
        )
    except KeyError as e:
        raise InvalidDataError(f"missing field {e}", record_id=record_id) from e
    except (ValidationError, OverflowError, OSError) as e:
        raise InvalidDataError(str(e), record_id=record_id) from e


def _load_array(raw: str | None, what: str) -> list[Any]:
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("shared_value_unreadable", what=what, error=str(e))
        return []
    if not isinstance(data, list):
        logger.warning("shared_value_not_array", what=what)
        return []
    return data


def split_reminders(raw: str | None) -> tuple[list[Reminder], list[Any]]:
    """Readable reminders, and the raw records that could not be read."""
    reminders = []
    unreadable = []
    for record in _load_array(raw, "reminders"):
        try:
            reminders.append(reminder_from_record(record))
        except InvalidDataError as e:
            logger.warning("reminder_record_skipped", error=e.message, **e.details)
            unreadable.append(record)
    return reminders, unreadable


def decode_reminders(raw: str | None) -> list[Reminder]:
    """Readable reminders; malformed records are skipped."""
    return split_reminders(raw)[0]


def encode_reminders(reminders: list[Reminder], unreadable: list[Any] | None = None) -> str:
    """Serialize, carrying unreadable records through untouched."""
    records = [reminder_to_record(r) for r in reminders] + list(unreadable or [])
    return json.dumps(records, ensure_ascii=False)


def action_to_record(action: PendingExtensionAction) -> dict[str, Any]:
    return {
        "intentId": action.intent_id,
        "type": action.type.value,
        "reminderId": action.reminder_id,
        "snoozeDate": _to_epoch(action.snooze_date),
        "anchorTrigger": _to_epoch(action.anchor_trigger),
        "recordedAt": _to_epoch(action.recorded_at),
    }


def action_from_record(record: Any) -> PendingExtensionAction:
    if not isinstance(record, dict):
        raise InvalidDataError("intent is not an object")
    try:
        fields: dict[str, Any] = {
            "type": record["type"],
            "reminder_id": record["reminderId"],
            "snooze_date": _from_epoch(record.get("snoozeDate")),
            "anchor_trigger": _from_epoch(record.get("anchorTrigger")),
        }
        # Records without an id get a stable one derived from their content
        fields["intent_id"] = record.get("intentId") or str(
            uuid5(NAMESPACE_URL, json.dumps(record, sort_keys=True))
        )
        if record.get("recordedAt") is not None:
            fields["recorded_at"] = _from_epoch(record["recordedAt"])
        return PendingExtensionAction(**fields)
    except KeyError as e:
        raise InvalidDataError(f"missing field {e}", record_id=record.get("reminderId")) from e
    except ValidationError as e:
        raise InvalidDataError(str(e), record_id=record.get("reminderId")) from e


def decode_actions(raw: str | None) -> list[tuple[Any, PendingExtensionAction | None]]:
    """Raw records paired with their decoded action (None if unreadable)."""
    pairs = []
    for record in _load_array(raw, "intents"):
        try:
            pairs.append((record, action_from_record(record)))
        except InvalidDataError as e:
            logger.warning("intent_record_unreadable", error=e.message)
            pairs.append((record, None))
    return pairs
