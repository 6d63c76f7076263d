"""
Notification scheduler.

Keeps the OS alert set equal to the active reminder set. The reminder id
is the alert identifier, so rescheduling always cancels first and then
registers afresh. Alert-center failures are logged and swallowed; the next
full resync retries them.
"""

from datetime import datetime, timedelta
from enum import Enum

from remindsync.config import get_logger
from remindsync.core.entities.reminder import Reminder, utc_now
from remindsync.core.exceptions import RemindSyncError, SchedulingFailedError
from remindsync.core.interfaces.notifications import AlertRequest, INotificationCenter
from remindsync.core.interfaces.storage import IReminderStore

logger = get_logger(__name__)


class AlertState(str, Enum):
    """Per-reminder alert lifecycle."""

    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    SNOOZED = "snoozed"
    DISMISSED = "dismissed"


def alert_payload(reminder_id: str, title: str) -> dict[str, str]:
    return {"reminderId": reminder_id, "title": title}


class NotificationScheduler:
    """Maps active reminders to scheduled alerts and maintains the badge."""

    def __init__(
        self,
        center: INotificationCenter,
        store: IReminderStore | None = None,
    ):
        self.center = center
        self.store = store
        self._states: dict[str, AlertState] = {}

    def state_of(self, reminder_id: str) -> AlertState:
        return self._states.get(reminder_id, AlertState.UNSCHEDULED)

    async def schedule_or_reschedule(
        self, reminder: Reminder, now: datetime | None = None
    ) -> bool:
        """
        Cancel any alert for this reminder, then schedule one at its
        effective instant if that lies in the future.

        Returns:
            True if an alert is now pending
        """
        now = now or utc_now()
        await self._remove(reminder.id)

        if not reminder.is_active:
            self._states[reminder.id] = AlertState.COMPLETED
            return False

        fire_at = reminder.effective_instant
        if fire_at <= now:
            # Past-due reminders count toward the badge instead
            self._states[reminder.id] = AlertState.UNSCHEDULED
            return False

        request = AlertRequest(
            identifier=reminder.id,
            fire_at=fire_at,
            title=reminder.title,
            subtitle=reminder.notes or None,
            payload=alert_payload(reminder.id, reminder.title),
        )
        try:
            await self.center.add(request)
        except SchedulingFailedError as e:
            logger.warning("alert_schedule_failed", reminder_id=reminder.id, error=str(e))
            self._states[reminder.id] = AlertState.UNSCHEDULED
            return False

        self._states[reminder.id] = AlertState.SCHEDULED
        logger.debug("alert_scheduled", reminder_id=reminder.id, fire_at=fire_at)
        return True

    async def cancel(
        self, reminder_id: str, outcome: AlertState = AlertState.UNSCHEDULED
    ) -> None:
        """Remove pending and delivered alerts. Safe for unknown ids."""
        await self._remove(reminder_id)
        if outcome == AlertState.UNSCHEDULED:
            self._states.pop(reminder_id, None)
        else:
            self._states[reminder_id] = outcome

    def mark_delivered(self, reminder_id: str) -> None:
        """Record that the alert for this reminder fired."""
        if self.state_of(reminder_id) in (AlertState.SCHEDULED, AlertState.SNOOZED):
            self._states[reminder_id] = AlertState.DELIVERED
            logger.info("alert_delivered", reminder_id=reminder_id)

    async def dismiss(self, reminder_id: str) -> None:
        await self.cancel(reminder_id, outcome=AlertState.DISMISSED)

    async def snooze(
        self,
        reminder_id: str,
        title: str,
        minutes: int,
        now: datetime | None = None,
    ) -> datetime:
        """
        Re-alert ``minutes`` from now and persist the snooze instant.

        The alert is best-effort; a failed store write is raised.
        """
        now = now or utc_now()
        until = now + timedelta(minutes=minutes)

        await self._remove(reminder_id)
        try:
            await self.center.add(
                AlertRequest(
                    identifier=reminder_id,
                    fire_at=until,
                    title=title,
                    payload=alert_payload(reminder_id, title),
                )
            )
            self._states[reminder_id] = AlertState.SNOOZED
        except SchedulingFailedError as e:
            logger.warning("snooze_alert_failed", reminder_id=reminder_id, error=str(e))
            self._states[reminder_id] = AlertState.UNSCHEDULED

        if self.store is not None:
            await self.store.snooze(reminder_id, until)
        logger.info("reminder_snoozed", reminder_id=reminder_id, minutes=minutes, until=until)
        return until

    async def resync_all(
        self, active: list[Reminder], now: datetime | None = None
    ) -> int:
        """
        Make the pending alert set exactly the future part of ``active``.

        Returns:
            Badge count after the resync
        """
        now = now or utc_now()
        try:
            await self.center.remove_all_pending()
        except RemindSyncError as e:
            logger.warning("remove_all_pending_failed", error=str(e))

        # Ids outside the active set have no alert left to track
        active_ids = {r.id for r in active}
        for reminder_id in [i for i in self._states if i not in active_ids]:
            del self._states[reminder_id]

        scheduled = 0
        for reminder in active:
            if await self.schedule_or_reschedule(reminder, now):
                scheduled += 1

        badge = await self.update_badge(active, now)
        logger.info("alerts_resynced", active=len(active), scheduled=scheduled, badge=badge)
        return badge

    async def update_badge(self, active: list[Reminder], now: datetime | None = None) -> int:
        """Badge = number of overdue active reminders."""
        now = now or utc_now()
        badge = sum(1 for r in active if r.is_overdue(now))
        try:
            await self.center.set_badge(badge)
        except RemindSyncError as e:
            logger.warning("badge_update_failed", error=str(e))
        return badge

    async def _remove(self, reminder_id: str) -> None:
        try:
            await self.center.remove_pending([reminder_id])
            await self.center.remove_delivered([reminder_id])
        except RemindSyncError as e:
            logger.warning("alert_cancel_failed", reminder_id=reminder_id, error=str(e))
