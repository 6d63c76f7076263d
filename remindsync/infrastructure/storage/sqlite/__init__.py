"""SQLite storage for the server side."""

from remindsync.infrastructure.storage.sqlite.connection import ServerDatabase
from remindsync.infrastructure.storage.sqlite.device_store import SQLiteDeviceStore
from remindsync.infrastructure.storage.sqlite.document_store import SQLiteReminderDocumentStore
from remindsync.infrastructure.storage.sqlite.migrations.migrator import run_migrations

__all__ = [
    "ServerDatabase",
    "SQLiteReminderDocumentStore",
    "SQLiteDeviceStore",
    "run_migrations",
]
