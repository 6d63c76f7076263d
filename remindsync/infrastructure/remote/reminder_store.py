"""
Remote reminder backend.

Reads and writes the signed-in user's reminder documents on the server.
The live subscription is a poll loop that runs only while somebody is
subscribed; a failed poll is logged and subscribers keep the last good
set.
"""

import asyncio
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from remindsync.config import get_logger
from remindsync.core.entities.reminder import Reminder, utc_now
from remindsync.core.exceptions import (
    InvalidDataError,
    ReminderNotFoundError,
    RemindSyncError,
)
from remindsync.core.interfaces.storage import ActiveSubscription, IReminderStore
from remindsync.infrastructure.remote.client import RemoteAPIClient
from remindsync.infrastructure.storage.broadcast import ActiveSetBroadcaster

logger = get_logger(__name__)


def parse_reminder(data: Any) -> Reminder:
    try:
        return Reminder.model_validate(data)
    except ValidationError as e:
        record_id = data.get("id") if isinstance(data, dict) else None
        raise InvalidDataError(str(e), record_id=record_id) from e


class RemoteReminderStore(IReminderStore):
    """Reminder collection on the server, for a signed-in user."""

    def __init__(self, client: RemoteAPIClient, poll_interval: float = 15.0):
        self.client = client
        self.poll_interval = poll_interval
        self._broadcaster = ActiveSetBroadcaster(
            on_first_subscriber=self._start_polling,
            on_last_unsubscribe=self._stop_polling,
        )
        self._poll_task: asyncio.Task | None = None

    @property
    def is_remote(self) -> bool:
        return True

    def observe_active(self) -> ActiveSubscription:
        return self._broadcaster.subscribe(primer=self.refresh)

    async def refresh(self) -> list[Reminder]:
        active = await self.list_active()
        self._broadcaster.publish(active)
        return active

    async def get(self, reminder_id: str) -> Reminder | None:
        path = f"{self.client.user_path('get')}/reminders/{reminder_id}"
        try:
            response = await self.client.request(
                "GET", path, "get", not_found=lambda: ReminderNotFoundError(reminder_id)
            )
        except ReminderNotFoundError:
            return None
        return parse_reminder(self.client.read_json(response, "get"))

    async def list_active(self) -> list[Reminder]:
        path = f"{self.client.user_path('list')}/reminders"
        response = await self.client.request("GET", path, "list")
        items = self.client.read_json(response, "list")
        if not isinstance(items, list):
            raise InvalidDataError(f"list returned {type(items).__name__}, expected a list")
        reminders = []
        for item in items:
            try:
                reminders.append(parse_reminder(item))
            except InvalidDataError as e:
                logger.warning("remote_reminder_skipped", **e.details)
        return reminders

    async def create(self, reminder: Reminder) -> Reminder:
        path = f"{self.client.user_path('create')}/reminders"
        response = await self.client.request(
            "POST", path, "create", json=reminder.model_dump(mode="json")
        )
        created = parse_reminder(self.client.read_json(response, "create"))
        logger.info("reminder_created", reminder_id=created.id, backend="remote")
        await self._publish_quietly()
        return created

    async def update(self, reminder: Reminder) -> Reminder:
        path = f"{self.client.user_path('update')}/reminders/{reminder.id}"
        response = await self.client.request(
            "PUT",
            path,
            "update",
            json=reminder.model_dump(mode="json"),
            not_found=lambda: ReminderNotFoundError(reminder.id),
        )
        await self._publish_quietly()
        return parse_reminder(self.client.read_json(response, "update"))

    async def complete(self, reminder_id: str, now: datetime | None = None) -> Reminder:
        path = f"{self.client.user_path('complete')}/reminders/{reminder_id}/complete"
        response = await self.client.request(
            "POST",
            path,
            "complete",
            json={"now": (now or utc_now()).isoformat()},
            not_found=lambda: ReminderNotFoundError(reminder_id),
        )
        completed = parse_reminder(self.client.read_json(response, "complete"))
        logger.info(
            "reminder_completed",
            reminder_id=reminder_id,
            status=completed.status.value,
            backend="remote",
        )
        await self._publish_quietly()
        return completed

    async def snooze(self, reminder_id: str, until: datetime) -> Reminder:
        path = f"{self.client.user_path('snooze')}/reminders/{reminder_id}/snooze"
        response = await self.client.request(
            "POST",
            path,
            "snooze",
            json={"until": until.isoformat()},
            not_found=lambda: ReminderNotFoundError(reminder_id),
        )
        await self._publish_quietly()
        return parse_reminder(self.client.read_json(response, "snooze"))

    async def delete(self, reminder_id: str) -> bool:
        path = f"{self.client.user_path('delete')}/reminders/{reminder_id}"
        try:
            await self.client.request(
                "DELETE", path, "delete", not_found=lambda: ReminderNotFoundError(reminder_id)
            )
        except ReminderNotFoundError:
            return False
        logger.info("reminder_deleted", reminder_id=reminder_id, backend="remote")
        await self._publish_quietly()
        return True

    async def close(self) -> None:
        await self._broadcaster.close_all()
        self._stop_polling()

    async def _publish_quietly(self) -> None:
        try:
            await self.refresh()
        except RemindSyncError as e:
            logger.warning("remote_refresh_failed", error=str(e))

    def _start_polling(self) -> None:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.ensure_future(self._poll_loop())

    def _stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                active = await self.list_active()
            except RemindSyncError as e:
                # Keep the last good set
                logger.warning("remote_poll_failed", error=str(e))
                continue
            latest = self._broadcaster.latest
            if latest is None or [r.model_dump() for r in latest] != [
                r.model_dump() for r in active
            ]:
                self._broadcaster.publish(active)
