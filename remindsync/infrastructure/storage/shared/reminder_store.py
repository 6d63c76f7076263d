"""
Local reminder backend.

Keeps the user's reminders as one JSON array under a fixed key in shared
storage. Every mutation re-reads the array, applies the change and saves
the whole array back inside one write transaction, so a concurrent write
by the notification extension is never lost and never read stale.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from remindsync.config import get_logger
from remindsync.core.entities.reminder import (
    RecurrenceRule,
    RecurrenceType,
    RecurrenceUnit,
    Reminder,
    sort_by_effective_instant,
    utc_now,
)
from remindsync.core.exceptions import ReminderNotFoundError
from remindsync.core.interfaces.storage import ActiveSubscription, IReminderStore
from remindsync.core.services.reminder_lifecycle import apply_completion, apply_snooze
from remindsync.infrastructure.storage.broadcast import ActiveSetBroadcaster
from remindsync.infrastructure.storage.shared.codec import (
    decode_reminders,
    encode_reminders,
    split_reminders,
)
from remindsync.infrastructure.storage.shared.kv import SharedStorage

logger = get_logger(__name__)


def sample_reminders(now: datetime) -> list[Reminder]:
    """Reminders shown on first launch."""
    day = now.replace(second=0, microsecond=0)
    return [
        Reminder(
            title="Welcome! Tap to complete this reminder",
            notes="Swipe to snooze or delete",
            trigger_date=day + timedelta(hours=1),
            created_at=now,
            updated_at=now,
        ),
        Reminder(
            title="Drink water",
            trigger_date=day + timedelta(hours=2),
            recurrence=RecurrenceRule(
                type=RecurrenceType.CUSTOM,
                interval=2,
                unit=RecurrenceUnit.HOUR,
                time_range_start="09:00",
                time_range_end="21:00",
            ),
            created_at=now,
            updated_at=now,
        ),
        Reminder(
            title="Weekly review",
            trigger_date=day + timedelta(days=1),
            recurrence=RecurrenceRule(type=RecurrenceType.WEEKLY),
            created_at=now,
            updated_at=now,
        ),
    ]


class LocalReminderStore(IReminderStore):
    """Reminder collection in the shared storage scope."""

    def __init__(self, storage: SharedStorage, key: str = "yomo_local_reminders"):
        self.storage = storage
        self.key = key
        self._broadcaster = ActiveSetBroadcaster()

    @property
    def is_remote(self) -> bool:
        return False

    def observe_active(self) -> ActiveSubscription:
        return self._broadcaster.subscribe(primer=self.refresh)

    async def refresh(self) -> list[Reminder]:
        active = await self.list_active()
        self._broadcaster.publish(active)
        return active

    async def load_all(self) -> list[Reminder]:
        return decode_reminders(await self.storage.read(self.key))

    async def get(self, reminder_id: str) -> Reminder | None:
        for reminder in await self.load_all():
            if reminder.id == reminder_id:
                return reminder
        return None

    async def list_active(self) -> list[Reminder]:
        return sort_by_effective_instant([r for r in await self.load_all() if r.is_active])

    async def create(self, reminder: Reminder) -> Reminder:
        def add(reminders: list[Reminder]) -> Reminder:
            reminders.append(reminder)
            return reminder

        created = await self._mutate(add)
        logger.info("reminder_created", reminder_id=created.id, backend="local")
        return created

    async def update(self, reminder: Reminder) -> Reminder:
        def replace(reminders: list[Reminder]) -> Reminder:
            index = self._index_of(reminders, reminder.id)
            reminders[index] = reminder
            return reminder

        return await self._mutate(replace)

    async def complete(self, reminder_id: str, now: datetime | None = None) -> Reminder:
        now = now or utc_now()

        def complete(reminders: list[Reminder]) -> Reminder:
            index = self._index_of(reminders, reminder_id)
            reminders[index] = apply_completion(reminders[index], now)
            return reminders[index]

        completed = await self._mutate(complete)
        logger.info(
            "reminder_completed",
            reminder_id=reminder_id,
            status=completed.status.value,
            trigger_date=completed.trigger_date,
        )
        return completed

    async def snooze(self, reminder_id: str, until: datetime) -> Reminder:
        now = utc_now()

        def snooze(reminders: list[Reminder]) -> Reminder:
            index = self._index_of(reminders, reminder_id)
            reminders[index] = apply_snooze(reminders[index], until, now)
            return reminders[index]

        return await self._mutate(snooze)

    async def delete(self, reminder_id: str) -> bool:
        def remove(reminders: list[Reminder]) -> bool:
            for index, reminder in enumerate(reminders):
                if reminder.id == reminder_id:
                    del reminders[index]
                    return True
            return False

        deleted = await self._mutate(remove)
        if deleted:
            logger.info("reminder_deleted", reminder_id=reminder_id, backend="local")
        return deleted

    async def seed_samples_if_needed(self, now: datetime | None = None) -> bool:
        """Write sample reminders if the key has never been written."""
        if await self.storage.exists(self.key):
            return False
        samples = sample_reminders(now or utc_now())

        def seed(raw: str | None) -> str:
            if raw is not None:
                return raw
            return encode_reminders(samples)

        await self.storage.update(self.key, seed)
        logger.info("sample_reminders_seeded", count=len(samples))
        await self.refresh()
        return True

    async def close(self) -> None:
        await self._broadcaster.close_all()

    async def _mutate(self, change: Callable[[list[Reminder]], object]):
        result: list[object] = []

        def transform(raw: str | None) -> str:
            reminders, unreadable = split_reminders(raw)
            result.append(change(reminders))
            return encode_reminders(reminders, unreadable)

        await self.storage.update(self.key, transform)
        await self.refresh()
        return result[0]

    @staticmethod
    def _index_of(reminders: list[Reminder], reminder_id: str) -> int:
        for index, reminder in enumerate(reminders):
            if reminder.id == reminder_id:
                return index
        raise ReminderNotFoundError(reminder_id)
