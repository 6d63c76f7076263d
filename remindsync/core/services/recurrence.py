"""
Recurrence engine.

Advances an anchor instant by whole rule periods until it lies strictly
after a reference instant. Hours are fixed-length; days, weeks and months
are calendar periods computed in the anchor's own timezone, so a daily
reminder keeps its wall-clock time across DST changes.
"""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from remindsync.core.entities.reminder import RecurrenceRule, RecurrenceUnit

# Period lengths in seconds (months at their longest), used only to jump close
_APPROX_SECONDS = {
    RecurrenceUnit.HOUR: 3600,
    RecurrenceUnit.DAY: 86400,
    RecurrenceUnit.WEEK: 604800,
    RecurrenceUnit.MONTH: 31 * 86400,
}


def period_offset(unit: RecurrenceUnit, count: int) -> timedelta | relativedelta:
    """Offset of ``count`` units."""
    if unit == RecurrenceUnit.HOUR:
        return timedelta(hours=count)
    if unit == RecurrenceUnit.DAY:
        return relativedelta(days=count)
    if unit == RecurrenceUnit.WEEK:
        return relativedelta(weeks=count)
    return relativedelta(months=count)


def occurrence(anchor: datetime, rule: RecurrenceRule, periods: int) -> datetime:
    """The anchor moved forward by ``periods`` whole rule periods."""
    unit = rule.period_unit
    if unit is None:
        raise ValueError("one-shot rule has no occurrences")
    return anchor + period_offset(unit, periods * rule.interval)


def next_trigger(anchor: datetime, rule: RecurrenceRule, now: datetime) -> datetime:
    """
    Next trigger strictly after ``now``.

    An anchor already after ``now`` is returned unchanged. Every result is
    ``anchor`` plus a whole number of periods; months are always measured
    from the anchor, so a reminder on the 31st returns to the 31st after a
    short month.

    Raises:
        ValueError: If the rule is not recurring
    """
    unit = rule.period_unit
    if unit is None:
        raise ValueError("one-shot rule has no next trigger")
    if anchor > now:
        return anchor

    approx = _APPROX_SECONDS[unit] * rule.interval
    periods = max(int((now - anchor).total_seconds() // approx) - 1, 0)
    candidate = occurrence(anchor, rule, periods)
    # The jump lands at or before now; step to the first occurrence after it
    while candidate <= now:
        periods += 1
        candidate = occurrence(anchor, rule, periods)
    return candidate
