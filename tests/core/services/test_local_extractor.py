"""Tests for the deterministic reminder extractor."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from conftest import NOW
from remindsync.core.entities import RecurrenceType
from remindsync.core.services.local_extractor import (
    extract_date,
    extract_recurrence,
    extract_time,
    extract_title,
    parse_locally,
    weekday_number,
)

TODAY = NOW.date()  # Wednesday 2025-03-12


class TestExtractTime:
    """Tests for time-of-day extraction."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("at 5pm", time(17, 0)),
            ("at 7:30 am", time(7, 30)),
            ("at 7:00 PM sharp", time(19, 0)),
            ("at 14:30", time(14, 30)),
            ("12am", time(0, 0)),
        ],
    )
    def test_parses(self, text: str, expected: time):
        assert extract_time(text) == expected

    def test_none_without_time(self):
        assert extract_time("buy milk") is None


class TestExtractDate:
    """Keyword priority: tomorrow, today, next week, weekday name."""

    def test_tomorrow(self):
        assert extract_date("buy milk tomorrow", TODAY) == date(2025, 3, 13)

    def test_today(self):
        assert extract_date("today call bank", TODAY) == TODAY

    def test_next_week(self):
        assert extract_date("pay rent next week", TODAY) == date(2025, 3, 19)

    def test_tomorrow_beats_weekday(self):
        assert extract_date("friday or tomorrow", TODAY) == date(2025, 3, 13)

    def test_weekday_strictly_future(self):
        assert extract_date("meeting friday", TODAY) == date(2025, 3, 14)
        assert extract_date("meeting monday", TODAY) == date(2025, 3, 17)

    def test_same_weekday_means_next_week(self):
        assert extract_date("yoga wednesday", TODAY) == date(2025, 3, 19)

    def test_none(self):
        assert extract_date("buy milk", TODAY) is None

    def test_weekday_numbering(self):
        assert weekday_number(date(2025, 3, 9)) == 1  # Sunday
        assert weekday_number(TODAY) == 4
        assert weekday_number(date(2025, 3, 15)) == 7  # Saturday


class TestExtractRecurrence:
    """Tests for repeat keyword detection."""

    @pytest.mark.parametrize("text", ["every day", "daily standup", "stretch everyday"])
    def test_daily(self, text: str):
        assert extract_recurrence(text).type == RecurrenceType.DAILY

    @pytest.mark.parametrize("text", ["every week", "weekly review"])
    def test_weekly(self, text: str):
        rule = extract_recurrence(text)
        assert rule.type == RecurrenceType.WEEKLY
        assert rule.days_of_week is None

    def test_every_named_days(self):
        rule = extract_recurrence("gym every monday and thursdays")
        assert rule.type == RecurrenceType.WEEKLY
        assert rule.days_of_week == [2, 5]

    def test_every_abbreviated_days(self):
        rule = extract_recurrence("class every tue, fri")
        assert rule.days_of_week == [3, 6]

    def test_none(self):
        assert extract_recurrence("buy milk on friday") is None


class TestExtractTitle:
    """Tests for title extraction."""

    def test_drops_temporal_words(self):
        assert extract_title("Buy milk tomorrow at 5pm") == "Buy Milk"

    def test_fallback_to_raw_input(self):
        assert extract_title("at 5pm tomorrow") == "At 5pm Tomorrow"

    def test_empty_falls_back_to_default(self):
        assert extract_title("", raw_input="") == "Reminder"

    def test_max_length(self):
        assert len(extract_title("word " * 60)) == 100

    def test_punctuation_stripped(self):
        assert extract_title("Email Bob, tomorrow!") == "Email Bob"


class TestParseLocally:
    """Tests for parse_locally()."""

    def test_relative_phrase(self):
        draft = parse_locally("Call mom in 10 minutes", NOW)

        assert draft.title == "Call Mom"
        assert draft.resolved_instant == NOW + timedelta(minutes=10)
        assert draft.due_date == TODAY
        assert draft.due_time == time(9, 40)
        assert draft.compose_trigger(NOW) == NOW + timedelta(minutes=10)
        assert draft.source == "local"

    def test_absolute_date_and_time(self):
        draft = parse_locally("Buy milk tomorrow at 5pm", NOW)

        assert draft.title == "Buy Milk"
        assert draft.due_date == date(2025, 3, 13)
        assert draft.due_time == time(17, 0)
        assert draft.resolved_instant is None
        assert draft.recurrence is None

    def test_weekday_and_24h_time(self):
        draft = parse_locally("Team meeting on friday at 14:30", NOW)

        assert draft.title == "Team Meeting"
        assert draft.due_date == date(2025, 3, 14)
        assert draft.due_time == time(14, 30)

    def test_daily_recurrence(self):
        draft = parse_locally("Take vitamins every day at 8am", NOW)

        assert draft.title == "Take Vitamins"
        assert draft.recurrence.type == RecurrenceType.DAILY
        assert draft.due_date is None
        assert draft.due_time == time(8, 0)

    def test_relative_phrase_only(self):
        """Nothing but the phrase falls back to the raw input for the title."""
        draft = parse_locally("in 10 minutes", NOW)
        assert draft.title == "In 10 Minutes"

    def test_never_raises_on_noise(self):
        draft = parse_locally("   ", NOW)
        assert draft.title == "Reminder"

    def test_day_and_clock_keywords(self):
        draft = parse_locally("Coffee tomorrow 10am", NOW)

        assert draft.title == "Coffee"
        assert draft.due_date == date(2025, 3, 13)
        assert draft.due_time == time(10, 0)
        assert draft.compose_trigger(NOW) == datetime(2025, 3, 13, 10, 0, tzinfo=timezone.utc)

    def test_every_weekday_name(self):
        draft = parse_locally("Call mom every monday", NOW)

        assert draft.title == "Call Mom"
        assert draft.recurrence.type == RecurrenceType.WEEKLY
        assert draft.recurrence.days_of_week == [2]


class TestParseLocallyZones:
    """Day and clock keywords follow the caller's wall clock."""

    def test_reads_keywords_in_nows_zone(self):
        shanghai = timezone(timedelta(hours=8))
        late_evening = datetime(2025, 3, 12, 23, 30, tzinfo=shanghai)  # 15:30 UTC

        draft = parse_locally("Coffee tomorrow 10am", late_evening)

        assert draft.due_date == date(2025, 3, 13)
        assert draft.compose_trigger(late_evening) == datetime(
            2025, 3, 13, 10, 0, tzinfo=shanghai
        )

    def test_weekday_from_local_date(self):
        """Just past midnight Thursday locally, still Wednesday in UTC."""
        tokyo = timezone(timedelta(hours=9))
        thursday = datetime(2025, 3, 13, 0, 30, tzinfo=tokyo)

        draft = parse_locally("Yoga thursday", thursday)

        assert draft.due_date == date(2025, 3, 20)

    def test_defaults_to_system_zone(self, shanghai_zone):
        local = parse_locally("Coffee tomorrow 10am").compose_trigger().astimezone()

        assert (local.hour, local.minute) == (10, 0)
        assert local.utcoffset() == timedelta(hours=8)
