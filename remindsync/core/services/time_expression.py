"""
Relative-time extraction.

Finds phrases such as "after 10min", "in two hours", "3 days from now",
"in half an hour" or "2小时后" and resolves them against a reference
instant. Patterns are tried in a fixed priority order and only the first
pattern that matches anywhere in the text is used.
"""

import re
from datetime import datetime, timedelta

from remindsync.config import get_logger
from remindsync.core.entities.parsing import TimeExpressionMatch

logger = get_logger(__name__)


UNIT_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 604800,
}

_ENGLISH_UNITS = {
    "second": ["seconds", "second", "secs", "sec", "s"],
    "minute": ["minutes", "minute", "mins", "min", "m"],
    "hour": ["hours", "hour", "hrs", "hr", "h"],
    "day": ["days", "day", "d"],
    "week": ["weeks", "week", "wks", "wk", "w"],
}

_CHINESE_UNITS = {
    "second": ["秒钟", "秒"],
    "minute": ["分钟", "分"],
    "hour": ["个小时", "个钟头", "小时", "钟头"],
    "day": ["天", "日"],
    "week": ["个星期", "个礼拜", "星期", "礼拜", "周"],
}

_ONES = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18,
    "nineteen": 19,
}

_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

_QUANTIFIERS = {
    "a couple of": 2,
    "couple of": 2,
    "couple": 2,
    "an": 1,
    "a": 1,
    "half": 0.5,
    "quarter": 0.25,
}

_CHINESE_DIGITS = {
    "零": 0, "一": 1, "二": 2, "两": 2, "三": 3, "四": 4,
    "五": 5, "六": 6, "七": 7, "八": 8, "九": 9,
}


def _alternation(words: list[str]) -> str:
    """Regex alternation, longest first so prefixes never win."""
    ordered = sorted(words, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(part) for part in w.split(" ")) for w in ordered)


def _unit_lookup(table: dict[str, list[str]]) -> dict[str, str]:
    return {spelling: unit for unit, spellings in table.items() for spelling in spellings}


_ENGLISH_UNIT_OF = _unit_lookup(_ENGLISH_UNITS)
_CHINESE_UNIT_OF = _unit_lookup(_CHINESE_UNITS)

_WORD_NUMBER = (
    rf"(?:{_alternation(list(_TENS))})(?:[\s-]+(?:{_alternation(list(_ONES)[:9])}))?"
    rf"|{_alternation(list(_ONES))}"
    rf"|{_alternation(list(_QUANTIFIERS))}"
)
_EN_UNIT = rf"(?P<unit>{_alternation(list(_ENGLISH_UNIT_OF))})\b"
_EN_AMOUNT_UNIT = (
    rf"(?:(?P<num>\d+(?:\.\d+)?)\s*|(?P<word>{_WORD_NUMBER})\s+){_EN_UNIT}"
)
_CN_NUMBER = r"[零一二两三四五六七八九]?十[一二三四五六七八九]?|[零一二两三四五六七八九]+|半"
_CN_UNIT = rf"(?P<unit>{_alternation(list(_CHINESE_UNIT_OF))})"

_FLAGS = re.IGNORECASE

# (name, pattern) in priority order
PRIMARY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("after_in_amount", re.compile(rf"\b(?:after|in)\s+{_EN_AMOUNT_UNIT}", _FLAGS)),
    (
        "amount_later",
        re.compile(rf"\b{_EN_AMOUNT_UNIT}\s+(?:later|from\s+now)\b", _FLAGS),
    ),
    (
        "fraction_of_hour",
        re.compile(
            r"\b(?:after|in)\s+(?:a\s+)?(?P<fraction>half|quarter)\s+(?:of\s+)?(?:an\s+)?hour\b",
            _FLAGS,
        ),
    ),
    (
        "chinese_after",
        re.compile(
            rf"(?:(?P<num>\d+(?:\.\d+)?)|(?P<cn>{_CN_NUMBER}))\s*{_CN_UNIT}\s*(?:之后|以后|后)"
        ),
    ),
]

COMPACT_PATTERN = re.compile(
    rf"(?:after|in)(?P<num>\d+(?:\.\d+)?){_EN_UNIT}", _FLAGS
)


def parse_english_number(word: str) -> float:
    """Value of an English amount word ("twenty-five", "a couple of", "half")."""
    normalized = " ".join(word.lower().replace("-", " ").split())
    if normalized in _QUANTIFIERS:
        return _QUANTIFIERS[normalized]
    if normalized in _ONES:
        return _ONES[normalized]
    parts = normalized.split(" ")
    value = _TENS[parts[0]]
    if len(parts) > 1:
        value += _ONES[parts[1]]
    return value


def parse_chinese_number(text: str) -> float:
    """Value of a Chinese numeral up to 99 ("十三" = 13, "二十五" = 25, "半" = 0.5)."""
    if text == "半":
        return 0.5
    if "十" in text:
        tens_part, _, ones_part = text.partition("十")
        tens = _CHINESE_DIGITS[tens_part] if tens_part else 1
        ones = _CHINESE_DIGITS[ones_part] if ones_part else 0
        return tens * 10 + ones
    value = 0
    for char in text:
        value = value * 10 + _CHINESE_DIGITS[char]
    return value


def _collapse(text: str) -> str:
    return " ".join(text.split())


class TimeExpressionParser:
    """Extracts a relative-duration phrase and resolves it to an instant."""

    def match(self, text: str, now: datetime) -> TimeExpressionMatch | None:
        """
        Resolve the highest-priority relative-time phrase in ``text``.

        Returns None if nothing matches; callers fall through to absolute
        date/time heuristics.
        """
        for name, pattern in PRIMARY_PATTERNS:
            found = pattern.search(text)
            if found:
                return self._resolve(name, found, text, now)

        lowered = text.lower()
        if "in" in lowered or "after" in lowered:
            found = COMPACT_PATTERN.search(text)
            if found:
                return self._resolve("compact", found, text, now)
        return None

    def _resolve(
        self, name: str, found: re.Match[str], text: str, now: datetime
    ) -> TimeExpressionMatch:
        seconds = self._offset_seconds(name, found)
        cleaned = _collapse(text[: found.start()] + " " + text[found.end():])
        logger.debug(
            "time_expression_matched",
            pattern=name,
            matched=found.group(0),
            offset_seconds=seconds,
        )
        return TimeExpressionMatch(
            matched_text=found.group(0),
            cleaned_text=cleaned,
            target_instant=now + timedelta(seconds=seconds),
            offset_seconds=seconds,
        )

    def _offset_seconds(self, name: str, found: re.Match[str]) -> float:
        groups = found.groupdict()
        if name == "fraction_of_hour":
            return _QUANTIFIERS[groups["fraction"].lower()] * UNIT_SECONDS["hour"]

        if groups.get("num"):
            amount = float(groups["num"])
        elif groups.get("cn"):
            amount = parse_chinese_number(groups["cn"])
        else:
            amount = parse_english_number(groups["word"])

        if name == "chinese_after":
            unit = _CHINESE_UNIT_OF[groups["unit"]]
        else:
            unit = _ENGLISH_UNIT_OF[groups["unit"].lower()]
        return amount * UNIT_SECONDS[unit]
