"""
Reminder Documents Use Case.

Server-side reads and writes of a user's reminder collection. Every write
returns the before/after snapshots so the caller can hand them to the
change fan-out.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from remindsync.application.dto.requests import (
    CreateReminderRequest,
    PatchReminderRequest,
    ReplaceReminderRequest,
)
from remindsync.config import get_logger
from remindsync.core.entities.reminder import Reminder, sort_by_effective_instant, utc_now
from remindsync.core.exceptions import ReminderNotFoundError, ValidationError
from remindsync.core.interfaces.storage import IReminderDocumentStore
from remindsync.core.services.reminder_lifecycle import apply_completion, apply_snooze

logger = get_logger(__name__)


@dataclass
class WriteResult:
    """A document write and its snapshots."""

    user_id: str
    before: Reminder | None
    after: Reminder | None

    @property
    def reminder(self) -> Reminder:
        return self.after if self.after is not None else self.before


def _build(data: dict) -> Reminder:
    try:
        return Reminder.model_validate(data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "reminder"
        raise ValidationError(field, error["msg"], error.get("input")) from e


class ReminderDocumentsUseCase:
    """
    Per-user reminder collection with server-side lifecycle transitions.

    Writes are last-write-wins at document granularity.
    """

    def __init__(self, documents: IReminderDocumentStore):
        self.documents = documents

    async def list_active(self, user_id: str) -> list[Reminder]:
        return sort_by_effective_instant(await self.documents.list_active(user_id))

    async def get(self, user_id: str, reminder_id: str) -> Reminder:
        reminder = await self.documents.get(user_id, reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    async def create(
        self, user_id: str, request: CreateReminderRequest, now: datetime | None = None
    ) -> WriteResult:
        now = now or utc_now()
        data = request.model_dump(exclude_none=True)
        data.setdefault("created_at", now)
        data.setdefault("updated_at", now)
        reminder = _build(data)

        before = await self.documents.get(user_id, reminder.id)
        after = await self.documents.put(user_id, reminder)
        logger.info("reminder_document_created", user_id=user_id, reminder_id=after.id)
        return WriteResult(user_id, before, after)

    async def replace(
        self,
        user_id: str,
        reminder_id: str,
        request: ReplaceReminderRequest,
        now: datetime | None = None,
    ) -> WriteResult:
        now = now or utc_now()
        before = await self.get(user_id, reminder_id)
        data = request.model_dump()
        data["id"] = reminder_id
        data["created_at"] = data["created_at"] or before.created_at
        data["updated_at"] = now

        after = await self.documents.put(user_id, _build(data))
        logger.info("reminder_document_replaced", user_id=user_id, reminder_id=reminder_id)
        return WriteResult(user_id, before, after)

    async def patch(
        self,
        user_id: str,
        reminder_id: str,
        request: PatchReminderRequest,
        now: datetime | None = None,
    ) -> WriteResult:
        now = now or utc_now()
        before = await self.get(user_id, reminder_id)
        changes = request.model_dump(include=request.model_fields_set)
        data = {**before.model_dump(), **changes, "id": reminder_id, "updated_at": now}

        after = await self.documents.put(user_id, _build(data))
        logger.info(
            "reminder_document_patched",
            user_id=user_id,
            reminder_id=reminder_id,
            fields=sorted(changes),
        )
        return WriteResult(user_id, before, after)

    async def complete(
        self, user_id: str, reminder_id: str, now: datetime | None = None
    ) -> WriteResult:
        now = now or utc_now()
        before = await self.get(user_id, reminder_id)
        updated = apply_completion(before, now)
        if updated is before:
            return WriteResult(user_id, before, before)

        after = await self.documents.put(user_id, updated)
        logger.info(
            "reminder_completed",
            user_id=user_id,
            reminder_id=reminder_id,
            status=after.status.value,
        )
        return WriteResult(user_id, before, after)

    async def snooze(
        self,
        user_id: str,
        reminder_id: str,
        until: datetime | None = None,
        minutes: int | None = None,
        now: datetime | None = None,
    ) -> WriteResult:
        now = now or utc_now()
        if until is None:
            if minutes is None:
                raise ValidationError("until", "either until or minutes is required")
            until = now + timedelta(minutes=minutes)

        before = await self.get(user_id, reminder_id)
        updated = apply_snooze(before, until, now)
        if updated is before:
            return WriteResult(user_id, before, before)

        after = await self.documents.put(user_id, updated)
        logger.info("reminder_snoozed", user_id=user_id, reminder_id=reminder_id, until=until)
        return WriteResult(user_id, before, after)

    async def delete(self, user_id: str, reminder_id: str) -> WriteResult:
        before = await self.get(user_id, reminder_id)
        await self.documents.delete(user_id, reminder_id)
        logger.info("reminder_document_deleted", user_id=user_id, reminder_id=reminder_id)
        return WriteResult(user_id, before, None)
