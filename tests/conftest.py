"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from time import tzset

import pytest

from remindsync.config import reset_settings
from remindsync.config.settings import Settings, StorageSettings
from remindsync.core.entities import (
    RecurrenceRule,
    RecurrenceType,
    Reminder,
)
from remindsync.core.interfaces.notifications import AlertRequest, INotificationCenter
from remindsync.core.exceptions import SchedulingFailedError
from remindsync.infrastructure.storage.shared import (
    LocalReminderStore,
    SharedIntentQueue,
    SharedStorage,
)

NOW = datetime(2025, 3, 12, 9, 30, tzinfo=timezone.utc)  # a Wednesday


@pytest.fixture(autouse=True)
def _reset_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Drop the cached settings between tests and keep their paths under tmp_path."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STORAGE_SHARED_GROUP_DIR", str(tmp_path / "group"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def shanghai_zone(monkeypatch: pytest.MonkeyPatch):
    """Run with the system time zone set to UTC+8."""
    with monkeypatch.context() as patch:
        patch.setenv("TZ", "CST-8")  # POSIX form, needs no zone database
        tzset()
        yield
    tzset()


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with every storage path under tmp_path."""
    return Settings(
        storage=StorageSettings(
            data_dir=tmp_path / "data",
            shared_group_dir=tmp_path / "group",
        ),
    )


@pytest.fixture
def shared_storage(tmp_path: Path) -> SharedStorage:
    return SharedStorage(tmp_path / "group" / "shared.db")


@pytest.fixture
async def local_store(shared_storage: SharedStorage) -> AsyncGenerator[LocalReminderStore, None]:
    store = LocalReminderStore(shared_storage)
    yield store
    await store.close()


@pytest.fixture
def intent_queue(shared_storage: SharedStorage) -> SharedIntentQueue:
    return SharedIntentQueue(shared_storage)


def make_reminder(
    title: str = "Water plants",
    trigger_date: datetime | None = None,
    **kwargs,
) -> Reminder:
    """Reminder due one hour after NOW unless told otherwise."""
    kwargs.setdefault("created_at", NOW)
    kwargs.setdefault("updated_at", NOW)
    return Reminder(
        title=title,
        trigger_date=trigger_date or NOW + timedelta(hours=1),
        **kwargs,
    )


def daily_rule() -> RecurrenceRule:
    return RecurrenceRule(type=RecurrenceType.DAILY)


class FakeNotificationCenter(INotificationCenter):
    """In-memory alert center recording every call."""

    def __init__(self, fail_ids: set[str] | None = None):
        self.pending: dict[str, AlertRequest] = {}
        self.delivered: dict[str, AlertRequest] = {}
        self.badge = 0
        self.fail_ids = fail_ids or set()
        self.remove_all_calls = 0

    async def add(self, request: AlertRequest) -> None:
        if request.identifier in self.fail_ids:
            raise SchedulingFailedError(request.identifier, "rejected")
        self.pending[request.identifier] = request

    async def remove_pending(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self.pending.pop(identifier, None)

    async def remove_delivered(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self.delivered.pop(identifier, None)

    async def remove_all_pending(self) -> None:
        self.remove_all_calls += 1
        self.pending.clear()

    async def pending_identifiers(self) -> list[str]:
        return list(self.pending)

    async def set_badge(self, count: int) -> None:
        self.badge = count


@pytest.fixture
def center() -> FakeNotificationCenter:
    return FakeNotificationCenter()
