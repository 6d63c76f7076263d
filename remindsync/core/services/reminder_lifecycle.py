"""
Reminder state transitions shared by every writer.

Both store backends, the notification extension and the intent replayer
apply completion and snooze through these functions, so one reminder
changes the same way no matter which surface touched it.
"""

from datetime import datetime

from remindsync.core.entities.reminder import Reminder, ReminderStatus, ensure_aware
from remindsync.core.services.recurrence import next_trigger

# Instants survive several encodings (epoch floats, ISO strings)
INSTANT_TOLERANCE_SECONDS = 0.001


def same_instant(a: datetime | None, b: datetime | None) -> bool:
    if a is None or b is None:
        return a is b
    return abs((a - b).total_seconds()) < INSTANT_TOLERANCE_SECONDS


def apply_completion(reminder: Reminder, now: datetime) -> Reminder:
    """
    Complete a reminder.

    One-shot reminders become completed. Recurring reminders stay active
    and their trigger date moves to the next occurrence after ``now``.
    The snooze override is cleared either way. Completing an already
    completed reminder returns it unchanged.
    """
    if not reminder.is_active:
        return reminder

    if reminder.recurrence is not None:
        return reminder.model_copy(
            update={
                "trigger_date": next_trigger(reminder.trigger_date, reminder.recurrence, now),
                "snoozed_until": None,
                "updated_at": now,
            }
        )

    return reminder.model_copy(
        update={
            "status": ReminderStatus.COMPLETED,
            "snoozed_until": None,
            "updated_at": now,
        }
    )


def apply_snooze(reminder: Reminder, until: datetime, now: datetime) -> Reminder:
    """Set the snooze override. Completed reminders are left alone."""
    if not reminder.is_active:
        return reminder
    return reminder.model_copy(update={"snoozed_until": ensure_aware(until), "updated_at": now})
