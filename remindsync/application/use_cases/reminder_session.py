"""
Reminder Session Use Case.

The primary process's view of the reminder list. On start and on every
foreground transition it drains pending extension intents first, so the
subscription that follows already reflects them. Each active set that
arrives is diffed against the previous one; reminders that dropped out
lose their alerts before the remaining ones are resynced.
"""

import asyncio
from datetime import datetime

from remindsync.config import get_logger
from remindsync.core.entities.reminder import (
    Reminder,
    local_now,
    sort_by_effective_instant,
    utc_now,
)
from remindsync.core.exceptions import ReminderNotFoundError, RemindSyncError
from remindsync.core.interfaces.storage import ActiveSubscription, IReminderStore
from remindsync.core.services.device_sync import DeviceSyncService
from remindsync.core.services.extension_bridge import (
    DrainReport,
    IntentReplayer,
    clamp_snooze_minutes,
)
from remindsync.core.services.notification_scheduler import AlertState, NotificationScheduler
from remindsync.core.services.reminder_parsing import ReminderParsingService

logger = get_logger(__name__)


class ReminderSession:
    """Keeps alerts in step with the active backend."""

    def __init__(
        self,
        store: IReminderStore,
        scheduler: NotificationScheduler,
        replayer: IntentReplayer,
        parser: ReminderParsingService | None = None,
        device_sync: DeviceSyncService | None = None,
        default_snooze_minutes: int = 15,
        min_snooze_minutes: int = 1,
        max_snooze_minutes: int = 60,
    ):
        self.store = store
        self.scheduler = scheduler
        self.replayer = replayer
        self.parser = parser or ReminderParsingService()
        self.device_sync = device_sync
        self.default_snooze_minutes = default_snooze_minutes
        self.min_snooze_minutes = min_snooze_minutes
        self.max_snooze_minutes = max_snooze_minutes

        self.active: list[Reminder] = []
        self._known_ids: set[str] = set()
        self._subscription: ActiveSubscription | None = None
        self._consumer: asyncio.Task | None = None
        self._synced = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self, now: datetime | None = None) -> DrainReport:
        """Drain intents, then subscribe to the active set."""
        report = await self._drain(now)
        if self._subscription is None:
            self._subscription = self.store.observe_active()
            self._consumer = asyncio.ensure_future(self._consume(self._subscription))
            logger.info("session_started", remote=self.store.is_remote)
        return report

    async def on_foreground(self, now: datetime | None = None) -> DrainReport:
        """Drain intents, re-read the backend and record device activity."""
        report = await self._drain(now)
        try:
            await self.store.refresh()
        except RemindSyncError as e:
            logger.warning("foreground_refresh_failed", error=str(e))
        if self.device_sync is not None:
            await self.device_sync.update_last_active(now)
        return report

    async def stop(self) -> None:
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        logger.info("session_stopped")

    async def wait_for_sync(self, timeout: float | None = None) -> None:
        """Wait until at least one active set has been applied."""
        await asyncio.wait_for(self._synced.wait(), timeout)

    async def apply_active_set(self, active: list[Reminder], now: datetime | None = None) -> int:
        """
        Reconcile alerts with a new active set.

        Returns:
            Badge count after the resync
        """
        new_ids = {r.id for r in active}
        for reminder_id in self._known_ids - new_ids:
            await self.scheduler.cancel(reminder_id)
        self._known_ids = new_ids
        self.active = sort_by_effective_instant(active)

        badge = await self.scheduler.resync_all(active, now)
        self._synced.set()
        return badge

    async def add_from_text(
        self, text: str, notes: str | None = None, now: datetime | None = None
    ) -> Reminder | None:
        """
        Parse ``text`` and create the reminder.

        Returns:
            The stored reminder, or None if a newer parse superseded this one
        """
        now = now or local_now()
        draft = await self.parser.parse(text, now)
        if draft is None:
            return None
        created = await self.store.create(draft.to_reminder(now, notes=notes))
        await self.scheduler.schedule_or_reschedule(created, now)
        logger.info(
            "reminder_added_from_text",
            reminder_id=created.id,
            source=draft.source,
            trigger_date=created.trigger_date,
        )
        return created

    async def complete(self, reminder_id: str, now: datetime | None = None) -> Reminder:
        now = now or utc_now()
        updated = await self.store.complete(reminder_id, now)
        if updated.is_active:
            await self.scheduler.schedule_or_reschedule(updated, now)
        else:
            await self.scheduler.cancel(reminder_id, outcome=AlertState.COMPLETED)
        return updated

    async def snooze(
        self,
        reminder_id: str,
        minutes: int | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        """
        Snooze an active reminder.

        Returns:
            The snooze instant, or None if the reminder is no longer active
        """
        reminder = await self.store.get(reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        if not reminder.is_active:
            logger.info("snooze_skipped_inactive", reminder_id=reminder_id)
            return None
        minutes = clamp_snooze_minutes(
            minutes,
            self.default_snooze_minutes,
            self.min_snooze_minutes,
            self.max_snooze_minutes,
        )
        return await self.scheduler.snooze(reminder_id, reminder.title, minutes, now)

    async def delete(self, reminder_id: str) -> bool:
        deleted = await self.store.delete(reminder_id)
        await self.scheduler.cancel(reminder_id)
        return deleted

    async def _drain(self, now: datetime | None) -> DrainReport:
        try:
            return await self.replayer.drain_pending_intents(now)
        except RemindSyncError as e:
            logger.warning("intent_drain_failed", error=str(e))
            return DrainReport()

    async def _consume(self, subscription: ActiveSubscription) -> None:
        async for active in subscription:
            try:
                await self.apply_active_set(active)
            except RemindSyncError as e:
                logger.warning("active_set_apply_failed", error=str(e))
