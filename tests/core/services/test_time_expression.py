"""Tests for relative-time extraction."""

from datetime import timedelta

import pytest

from conftest import NOW
from remindsync.core.services.time_expression import (
    TimeExpressionParser,
    parse_chinese_number,
    parse_english_number,
)


@pytest.fixture
def parser() -> TimeExpressionParser:
    return TimeExpressionParser()


class TestEnglishPhrases:
    """English relative durations."""

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("after 10min", 600),
            ("Call mom in two hours", 7200),
            ("Stretch in 1.5 hours", 5400),
            ("Pay rent 3 days from now", 3 * 86400),
            ("Check oven twenty-five minutes later", 1500),
            ("Leave in an hour", 3600),
            ("Water plants in a couple of days", 2 * 86400),
            ("Backup in 2 weeks", 14 * 86400),
            ("Ping in 30 secs", 30),
        ],
    )
    def test_offsets(self, parser: TimeExpressionParser, text: str, seconds: int):
        match = parser.match(text, NOW)
        assert match is not None
        assert match.offset_seconds == seconds
        assert match.target_instant == NOW + timedelta(seconds=seconds)

    def test_half_an_hour(self, parser: TimeExpressionParser):
        match = parser.match("Tea in half an hour", NOW)
        assert match.offset_seconds == 1800

    def test_quarter_of_an_hour(self, parser: TimeExpressionParser):
        match = parser.match("Tea in a quarter of an hour", NOW)
        assert match.offset_seconds == 900

    def test_compact_form(self, parser: TimeExpressionParser):
        match = parser.match("remind me in10min", NOW)
        assert match is not None
        assert match.offset_seconds == 600

    def test_cleaned_text_drops_phrase(self, parser: TimeExpressionParser):
        match = parser.match("Call mom in two hours", NOW)
        assert match.matched_text == "in two hours"
        assert match.cleaned_text == "Call mom"

    def test_first_pattern_wins(self, parser: TimeExpressionParser):
        """Only the highest-priority pattern is used."""
        match = parser.match("in 2 hours or 3 days from now", NOW)
        assert match.offset_seconds == 7200

    @pytest.mark.parametrize(
        "text",
        ["Buy milk tomorrow at 5pm", "Dinner at 7", "Team meeting on friday", ""],
    )
    def test_no_relative_phrase(self, parser: TimeExpressionParser, text: str):
        assert parser.match(text, NOW) is None


class TestChinesePhrases:
    """Chinese relative durations."""

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("2小时后提醒我", 7200),
            ("三天后交报告", 3 * 86400),
            ("十五分钟之后", 900),
            ("半小时以后喝水", 1800),
            ("两个星期后", 14 * 86400),
        ],
    )
    def test_offsets(self, parser: TimeExpressionParser, text: str, seconds: int):
        match = parser.match(text, NOW)
        assert match is not None
        assert match.offset_seconds == seconds


class TestNumberWords:
    """Tests for number word parsing."""

    @pytest.mark.parametrize(
        "word,value",
        [
            ("one", 1),
            ("twelve", 12),
            ("forty", 40),
            ("twenty-five", 25),
            ("a couple of", 2),
            ("half", 0.5),
        ],
    )
    def test_english(self, word: str, value: float):
        assert parse_english_number(word) == value

    @pytest.mark.parametrize(
        "text,value",
        [("三", 3), ("十", 10), ("十三", 13), ("二十五", 25), ("四十", 40), ("半", 0.5)],
    )
    def test_chinese(self, text: str, value: float):
        assert parse_chinese_number(text) == value
