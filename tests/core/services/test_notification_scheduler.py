"""Tests for NotificationScheduler."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import NOW, FakeNotificationCenter, make_reminder
from remindsync.core.entities import ReminderStatus
from remindsync.core.services.notification_scheduler import AlertState, NotificationScheduler


@pytest.fixture
def scheduler(center: FakeNotificationCenter) -> NotificationScheduler:
    return NotificationScheduler(center)


class TestScheduleOrReschedule:
    """Tests for schedule_or_reschedule()."""

    async def test_future_reminder_scheduled(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder(notes="bring bag")

        assert await scheduler.schedule_or_reschedule(reminder, NOW) is True

        request = center.pending[reminder.id]
        assert request.fire_at == reminder.trigger_date
        assert request.title == "Water plants"
        assert request.subtitle == "bring bag"
        assert request.payload == {"reminderId": reminder.id, "title": "Water plants"}
        assert scheduler.state_of(reminder.id) == AlertState.SCHEDULED

    async def test_snoozed_reminder_fires_at_snooze(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder(snoozed_until=NOW + timedelta(minutes=20))
        await scheduler.schedule_or_reschedule(reminder, NOW)
        assert center.pending[reminder.id].fire_at == NOW + timedelta(minutes=20)

    async def test_past_due_not_scheduled(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder(trigger_date=NOW - timedelta(minutes=1))

        assert await scheduler.schedule_or_reschedule(reminder, NOW) is False
        assert reminder.id not in center.pending

    async def test_due_exactly_now_not_scheduled(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder(trigger_date=NOW)
        assert await scheduler.schedule_or_reschedule(reminder, NOW) is False

    async def test_reschedule_replaces_existing(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)
        moved = reminder.model_copy(update={"trigger_date": NOW + timedelta(hours=4)})

        await scheduler.schedule_or_reschedule(moved, NOW)

        assert list(center.pending) == [reminder.id]
        assert center.pending[reminder.id].fire_at == NOW + timedelta(hours=4)

    async def test_completed_reminder_loses_alert(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)
        done = reminder.model_copy(update={"status": ReminderStatus.COMPLETED})

        assert await scheduler.schedule_or_reschedule(done, NOW) is False
        assert center.pending == {}
        assert scheduler.state_of(reminder.id) == AlertState.COMPLETED

    async def test_center_failure_swallowed(self):
        reminder = make_reminder()
        center = FakeNotificationCenter(fail_ids={reminder.id})
        scheduler = NotificationScheduler(center)

        assert await scheduler.schedule_or_reschedule(reminder, NOW) is False
        assert scheduler.state_of(reminder.id) == AlertState.UNSCHEDULED


class TestCancel:
    """Tests for cancel() and delivery tracking."""

    async def test_cancel_removes_pending_and_delivered(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)
        center.delivered[reminder.id] = center.pending[reminder.id]

        await scheduler.cancel(reminder.id, outcome=AlertState.COMPLETED)

        assert center.pending == {}
        assert center.delivered == {}
        assert scheduler.state_of(reminder.id) == AlertState.COMPLETED

    async def test_cancel_unknown_id_is_safe(self, scheduler: NotificationScheduler):
        await scheduler.cancel("missing")
        assert scheduler.state_of("missing") == AlertState.UNSCHEDULED

    async def test_plain_cancel_forgets_the_id(self, scheduler: NotificationScheduler):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)

        await scheduler.cancel(reminder.id)

        assert reminder.id not in scheduler._states
        assert scheduler.state_of(reminder.id) == AlertState.UNSCHEDULED

    async def test_mark_delivered(self, scheduler: NotificationScheduler):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)

        scheduler.mark_delivered(reminder.id)

        assert scheduler.state_of(reminder.id) == AlertState.DELIVERED

    async def test_mark_delivered_ignores_unscheduled(self, scheduler: NotificationScheduler):
        scheduler.mark_delivered("never-scheduled")
        assert scheduler.state_of("never-scheduled") == AlertState.UNSCHEDULED

    async def test_dismiss(self, scheduler: NotificationScheduler):
        reminder = make_reminder()
        await scheduler.schedule_or_reschedule(reminder, NOW)
        await scheduler.dismiss(reminder.id)
        assert scheduler.state_of(reminder.id) == AlertState.DISMISSED


class TestSnooze:
    """Tests for snooze()."""

    async def test_realerts_and_persists(self, center: FakeNotificationCenter):
        store = AsyncMock()
        scheduler = NotificationScheduler(center, store)

        until = await scheduler.snooze("r1", "Tea", 10, NOW)

        assert until == NOW + timedelta(minutes=10)
        assert center.pending["r1"].fire_at == until
        assert scheduler.state_of("r1") == AlertState.SNOOZED
        store.snooze.assert_awaited_once_with("r1", until)

    async def test_alert_failure_still_persists(self):
        center = FakeNotificationCenter(fail_ids={"r1"})
        store = AsyncMock()
        scheduler = NotificationScheduler(center, store)

        until = await scheduler.snooze("r1", "Tea", 5, NOW)

        store.snooze.assert_awaited_once_with("r1", until)
        assert scheduler.state_of("r1") == AlertState.UNSCHEDULED


class TestResyncAll:
    """Tests for resync_all() and the badge."""

    async def test_pending_set_matches_future_active(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        stale = make_reminder("Stale")
        await scheduler.schedule_or_reschedule(stale, NOW)

        future = make_reminder("Future")
        overdue = make_reminder("Overdue", NOW - timedelta(hours=1))
        snoozed_past = make_reminder(
            "Snoozed", NOW - timedelta(hours=2), snoozed_until=NOW + timedelta(minutes=5)
        )

        badge = await scheduler.resync_all([future, overdue, snoozed_past], NOW)

        assert set(center.pending) == {future.id, snoozed_past.id}
        assert badge == 1
        assert center.badge == 1
        assert center.remove_all_calls == 1
        assert scheduler.state_of(stale.id) == AlertState.UNSCHEDULED

    async def test_empty_set_clears_everything(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        await scheduler.schedule_or_reschedule(make_reminder(), NOW)

        badge = await scheduler.resync_all([], NOW)

        assert center.pending == {}
        assert badge == 0

    async def test_badge_counts_overdue_only(self, scheduler: NotificationScheduler):
        active = [
            make_reminder("a", NOW - timedelta(minutes=1)),
            make_reminder("b", NOW - timedelta(days=1)),
            make_reminder("c", NOW + timedelta(minutes=1)),
        ]
        assert await scheduler.update_badge(active, NOW) == 2

    async def test_forgets_ids_outside_active_set(
        self, scheduler: NotificationScheduler, center: FakeNotificationCenter
    ):
        kept, done = make_reminder("Kept"), make_reminder("Done")
        await scheduler.schedule_or_reschedule(kept, NOW)
        await scheduler.schedule_or_reschedule(done, NOW)
        await scheduler.cancel(done.id, outcome=AlertState.COMPLETED)

        await scheduler.resync_all([kept], NOW)

        assert set(scheduler._states) == {kept.id}
