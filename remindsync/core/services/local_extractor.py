"""
Deterministic natural-language extractor.

Turns free text into a reminder draft using keyword and regex rules. It is
the fallback for network parsing and never raises: ambiguous input is
settled by fixed priority rules.
"""

import re
import string
from datetime import date, datetime, time, timedelta

from remindsync.core.entities.parsing import ReminderDraft
from remindsync.core.entities.reminder import RecurrenceRule, RecurrenceType, local_now
from remindsync.core.services.time_expression import TimeExpressionParser

TITLE_MAX_LENGTH = 100
FALLBACK_TITLE_LENGTH = 50

# 1=Sunday ... 7=Saturday
WEEKDAY_NAMES = [
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
]

_WEEKDAY_ABBREVIATIONS = {
    "sun": 1, "mon": 2, "tue": 3, "tues": 3, "wed": 4,
    "thu": 5, "thur": 5, "thurs": 5, "fri": 6, "sat": 7,
}

TIME_PATTERNS = [
    re.compile(r"(?<!\d)\d{1,2}:\d{2}\s*(?:am|pm)", re.IGNORECASE),
    re.compile(r"(?<!\d)\d{1,2}\s*(?:am|pm)", re.IGNORECASE),
    re.compile(r"(?<!\d)\d{1,2}:\d{2}"),
]

TIME_FORMATS = ["%I:%M %p", "%I %p", "%H:%M", "%I:%M%p", "%I%p"]

STOP_WORDS = frozenset(
    [
        "at", "on", "in", "after", "every", "tomorrow", "today", "tonight",
        "next", "week", "weeks", "later", "from", "now",
        "am", "pm", "daily", "weekly", "everyday",
        "remind", "me", "to", "the",
        "second", "seconds", "sec", "secs",
        "minute", "minutes", "min", "mins",
        "hour", "hours", "hr", "hrs",
        "day", "days",
    ]
    + WEEKDAY_NAMES
    + [name + "s" for name in WEEKDAY_NAMES]
)

_NUMERIC_TIME_TOKEN = re.compile(r"^\d{1,2}(:\d{2})?(am|pm)?$")


def weekday_number(day: date) -> int:
    """1=Sunday ... 7=Saturday."""
    return (day.weekday() + 1) % 7 + 1


def capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def extract_time(text: str) -> time | None:
    """First time-of-day that parses, trying patterns in order."""
    for pattern in TIME_PATTERNS:
        found = pattern.search(text)
        if not found:
            continue
        candidate = " ".join(found.group(0).upper().split())
        for fmt in TIME_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).time()
            except ValueError:
                continue
    return None


def extract_date(text: str, today: date) -> date | None:
    """Calendar date from keywords: tomorrow > today > next week > weekday."""
    lowered = text.lower()
    if "tomorrow" in lowered:
        return today + timedelta(days=1)
    if "today" in lowered:
        return today
    if "next week" in lowered:
        return today + timedelta(days=7)
    for number, name in enumerate(WEEKDAY_NAMES, start=1):
        if name in lowered:
            days_ahead = number - weekday_number(today)
            if days_ahead <= 0:
                days_ahead += 7
            return today + timedelta(days=days_ahead)
    return None


def _mentioned_weekdays(lowered: str) -> list[int]:
    days = set()
    for token in re.findall(r"[a-z]+", lowered):
        if token in WEEKDAY_NAMES:
            days.add(WEEKDAY_NAMES.index(token) + 1)
        elif token.endswith("s") and token[:-1] in WEEKDAY_NAMES:
            days.add(WEEKDAY_NAMES.index(token[:-1]) + 1)
        elif token in _WEEKDAY_ABBREVIATIONS:
            days.add(_WEEKDAY_ABBREVIATIONS[token])
    return sorted(days)


def extract_recurrence(text: str) -> RecurrenceRule | None:
    lowered = text.lower()
    if "every day" in lowered or "daily" in lowered or "everyday" in lowered:
        return RecurrenceRule(type=RecurrenceType.DAILY)
    if "every week" in lowered or "weekly" in lowered:
        return RecurrenceRule(type=RecurrenceType.WEEKLY)
    if "every" in lowered:
        days = _mentioned_weekdays(lowered.split("every", 1)[1])
        if days:
            return RecurrenceRule(type=RecurrenceType.WEEKLY, days_of_week=days)
    return None


def extract_title(text: str, raw_input: str | None = None) -> str:
    """
    Title from the words left after dropping temporal and filler words.

    Falls back to the first characters of the raw input when nothing is
    left. Always at most 100 characters.
    """
    words = []
    for token in text.split():
        word = token.lower().strip(string.punctuation)
        if not word or word in STOP_WORDS or _NUMERIC_TIME_TOKEN.match(word):
            continue
        words.append(word)

    if words:
        title = capitalize_words(" ".join(words))
    else:
        source = " ".join((raw_input if raw_input is not None else text).split())
        title = capitalize_words(source[:FALLBACK_TITLE_LENGTH]) or "Reminder"
    return title[:TITLE_MAX_LENGTH]


def parse_locally(
    text: str,
    now: datetime | None = None,
    time_parser: TimeExpressionParser | None = None,
) -> ReminderDraft:
    """
    Best-effort reminder draft from ``text``.

    Day and clock keywords are read on ``now``'s wall clock, so pass an
    instant in the user's zone. Defaults to the system zone.
    """
    now = now or local_now()
    time_parser = time_parser or TimeExpressionParser()

    relative = time_parser.match(text, now)
    if relative is not None:
        target = relative.target_instant
        return ReminderDraft(
            title=extract_title(relative.cleaned_text, raw_input=text),
            due_date=target.date(),
            due_time=target.time(),
            recurrence=extract_recurrence(relative.cleaned_text),
            resolved_instant=target,
        )

    return ReminderDraft(
        title=extract_title(text),
        due_date=extract_date(text, now.date()),
        due_time=extract_time(text),
        recurrence=extract_recurrence(text),
    )
