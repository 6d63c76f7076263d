"""
SQLite implementation of the server-side reminder documents.

One row per (user, reminder). Instants are stored as epoch seconds so the
active list can be ordered by effective instant in SQL.
"""

import json
from datetime import datetime, timezone

import aiosqlite
from pydantic import ValidationError

from remindsync.config import get_logger
from remindsync.core.entities.reminder import RecurrenceRule, Reminder
from remindsync.core.exceptions import InvalidDataError
from remindsync.core.interfaces.storage import IReminderDocumentStore
from remindsync.infrastructure.storage.sqlite.connection import ServerDatabase

logger = get_logger(__name__)


def _epoch(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


def _instant(value: float | None) -> datetime | None:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value is not None else None


class SQLiteReminderDocumentStore(IReminderDocumentStore):
    """Reminder documents keyed by user."""

    def __init__(self, database: ServerDatabase):
        self.database = database

    async def get(self, user_id: str, reminder_id: str) -> Reminder | None:
        async with self.database.read() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reminder_documents WHERE user_id = ? AND id = ?",
                (user_id, reminder_id),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entity(row)

    async def list_active(self, user_id: str) -> list[Reminder]:
        """Active documents ordered by effective instant ascending."""
        async with self.database.read() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminder_documents
                WHERE user_id = ? AND status = 'active'
                ORDER BY COALESCE(snoozed_until, trigger_at) ASC, id ASC
                """,
                (user_id,),
            )
            rows = await cursor.fetchall()

        reminders = []
        for row in rows:
            try:
                reminders.append(self._row_to_entity(row))
            except InvalidDataError as e:
                logger.warning("reminder_document_skipped", user_id=user_id, **e.details)
        return reminders

    async def put(self, user_id: str, reminder: Reminder) -> Reminder:
        recurrence = (
            reminder.recurrence.model_dump_json() if reminder.recurrence is not None else None
        )
        async with self.database.write("put_reminder_document") as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO reminder_documents (
                    user_id, id, title, notes, trigger_at, recurrence,
                    status, snoozed_until, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    reminder.id,
                    reminder.title,
                    reminder.notes,
                    _epoch(reminder.trigger_date),
                    recurrence,
                    reminder.status.value,
                    _epoch(reminder.snoozed_until),
                    _epoch(reminder.created_at),
                    _epoch(reminder.updated_at),
                ),
            )
        logger.info("reminder_document_written", user_id=user_id, reminder_id=reminder.id)
        return reminder

    async def delete(self, user_id: str, reminder_id: str) -> bool:
        async with self.database.write("delete_reminder_document") as conn:
            cursor = await conn.execute(
                "DELETE FROM reminder_documents WHERE user_id = ? AND id = ?",
                (user_id, reminder_id),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("reminder_document_deleted", user_id=user_id, reminder_id=reminder_id)
        return deleted

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Reminder:
        try:
            recurrence = None
            if row["recurrence"]:
                recurrence = RecurrenceRule.model_validate(json.loads(row["recurrence"]))
            return Reminder(
                id=row["id"],
                title=row["title"],
                notes=row["notes"],
                trigger_date=_instant(row["trigger_at"]),
                recurrence=recurrence,
                status=row["status"],
                snoozed_until=_instant(row["snoozed_until"]),
                created_at=_instant(row["created_at"]),
                updated_at=_instant(row["updated_at"]),
            )
        except (ValidationError, json.JSONDecodeError) as e:
            raise InvalidDataError(str(e), record_id=row["id"]) from e
