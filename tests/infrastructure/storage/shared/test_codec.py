"""Tests for the shared-storage record format."""

import json
from datetime import timedelta

import pytest

from conftest import NOW, make_reminder
from remindsync.core.entities import (
    ExtensionActionType,
    PendingExtensionAction,
    RecurrenceRule,
    RecurrenceType,
    RecurrenceUnit,
)
from remindsync.core.exceptions import InvalidDataError
from remindsync.infrastructure.storage.shared.codec import (
    action_from_record,
    action_to_record,
    decode_actions,
    decode_reminders,
    encode_reminders,
    reminder_from_record,
    reminder_to_record,
    split_reminders,
)


class TestReminderRecords:
    """Tests for reminder records."""

    def test_flat_camel_case_epoch_fields(self):
        reminder = make_reminder(
            recurrence=RecurrenceRule(
                type=RecurrenceType.CUSTOM,
                interval=2,
                unit=RecurrenceUnit.HOUR,
                time_range_start="09:00",
                time_range_end="21:00",
            )
        )

        record = reminder_to_record(reminder)

        assert record["triggerDate"] == reminder.trigger_date.timestamp()
        assert record["recurrenceType"] == "custom"
        assert record["recurrenceInterval"] == 2
        assert record["recurrenceUnit"] == "hour"
        assert record["recurrenceTimeRangeStart"] == "09:00"
        assert record["status"] == "active"
        assert record["snoozedUntil"] is None

    def test_record_survives_encoding(self):
        reminder = make_reminder(
            notes="n",
            snoozed_until=NOW + timedelta(minutes=7),
            recurrence=RecurrenceRule(type=RecurrenceType.WEEKLY, days_of_week=[2, 4]),
        )
        assert reminder_from_record(reminder_to_record(reminder)) == reminder

    def test_minimal_record(self):
        """Only id, title and trigger date are required."""
        reminder = reminder_from_record(
            {"id": "r1", "title": "Tea", "triggerDate": NOW.timestamp()}
        )
        assert reminder.trigger_date == NOW
        assert reminder.created_at == NOW
        assert reminder.recurrence is None
        assert reminder.is_active

    def test_none_recurrence_type_ignored(self):
        reminder = reminder_from_record(
            {"id": "r1", "title": "Tea", "triggerDate": NOW.timestamp(), "recurrenceType": "none"}
        )
        assert reminder.recurrence is None

    @pytest.mark.parametrize(
        "record",
        [
            "not a dict",
            {"title": "no id", "triggerDate": 0},
            {"id": "r1", "title": "no trigger"},
            {"id": "r1", "title": "Tea", "triggerDate": "yesterday"},
            {"id": "r1", "title": "", "triggerDate": 0},
            {"id": "r1", "title": "Tea", "triggerDate": 0, "recurrenceType": "custom"},
        ],
    )
    def test_invalid_records(self, record):
        with pytest.raises(InvalidDataError):
            reminder_from_record(record)


class TestReminderArray:
    """Tests for the reminder array."""

    def test_unreadable_records_skipped(self):
        good = make_reminder()
        raw = json.dumps([reminder_to_record(good), {"id": "bad"}])

        assert decode_reminders(raw) == [good]

    def test_unreadable_records_carried_through(self):
        good = make_reminder()
        bad = {"id": "bad", "future": True}
        reminders, unreadable = split_reminders(json.dumps([reminder_to_record(good), bad]))

        encoded = json.loads(encode_reminders(reminders, unreadable))

        assert bad in encoded
        assert len(encoded) == 2

    @pytest.mark.parametrize("raw", [None, "", "{not json", '{"a": 1}'])
    def test_unreadable_value_is_empty(self, raw):
        assert decode_reminders(raw) == []


class TestActionRecords:
    """Tests for pending intent records."""

    def test_round_trip(self):
        action = PendingExtensionAction(
            type=ExtensionActionType.SNOOZE,
            reminder_id="r1",
            snooze_date=NOW,
            anchor_trigger=NOW - timedelta(hours=1),
            recorded_at=NOW,
        )
        assert action_from_record(action_to_record(action)) == action

    def test_missing_intent_id_is_stable(self):
        """Records written without an id get the same id on every read."""
        record = {"type": "complete", "reminderId": "r1"}
        assert action_from_record(record).intent_id == action_from_record(dict(record)).intent_id

    def test_decode_pairs_unreadable(self):
        good = action_to_record(
            PendingExtensionAction(type=ExtensionActionType.COMPLETE, reminder_id="r1")
        )
        raw = json.dumps([good, {"type": "snooze", "reminderId": "r2"}, 7])

        pairs = decode_actions(raw)

        assert [action is not None for _, action in pairs] == [True, False, False]
