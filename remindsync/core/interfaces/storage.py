"""
Abstract interfaces for reminder, intent and device storage.

Defines contracts shared by the local and remote reminder backends and by
the server-side document store.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.extension import PendingExtensionAction
from remindsync.core.entities.reminder import Reminder


class ActiveSubscription(ABC):
    """
    Handle on a live stream of the active reminder set.

    Iterating yields the full active set, ordered by effective instant,
    once on subscribe and again after every mutation. Slow consumers only
    ever see the newest set. After ``close`` nothing further is delivered.
    """

    def __aiter__(self) -> "ActiveSubscription":
        return self

    @abstractmethod
    async def __anext__(self) -> list[Reminder]:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Drop the subscription."""
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        pass

    async def __aenter__(self) -> "ActiveSubscription":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


class IReminderStore(ABC):
    """
    Authoritative reminder collection for one user.

    Implementations: LocalReminderStore, RemoteReminderStore
    """

    @property
    @abstractmethod
    def is_remote(self) -> bool:
        """True when writes go to the remote document backend."""
        pass

    @abstractmethod
    def observe_active(self) -> ActiveSubscription:
        """Subscribe to the active set."""
        pass

    @abstractmethod
    async def refresh(self) -> list[Reminder]:
        """Re-read the backend and publish the active set to subscribers."""
        pass

    @abstractmethod
    async def get(self, reminder_id: str) -> Reminder | None:
        """Get reminder by ID."""
        pass

    @abstractmethod
    async def list_active(self) -> list[Reminder]:
        """Active reminders ordered by effective instant ascending."""
        pass

    @abstractmethod
    async def create(self, reminder: Reminder) -> Reminder:
        """Store a new reminder."""
        pass

    @abstractmethod
    async def update(self, reminder: Reminder) -> Reminder:
        """Replace an existing reminder (last write wins)."""
        pass

    @abstractmethod
    async def complete(self, reminder_id: str, now: datetime | None = None) -> Reminder:
        """Complete a reminder; recurring ones advance instead."""
        pass

    @abstractmethod
    async def snooze(self, reminder_id: str, until: datetime) -> Reminder:
        """Set the snooze override instant."""
        pass

    @abstractmethod
    async def delete(self, reminder_id: str) -> bool:
        """Permanently delete. Returns False if it did not exist."""
        pass


class IIntentQueue(ABC):
    """Append-only queue of extension actions awaiting replay."""

    @abstractmethod
    async def append(self, action: PendingExtensionAction) -> None:
        """Append without dedup or overwrite."""
        pass

    @abstractmethod
    async def peek_all(self) -> list[PendingExtensionAction]:
        """All readable queued actions, oldest first."""
        pass

    @abstractmethod
    async def acknowledge(self, intent_ids: list[str]) -> int:
        """Remove the given actions (and unreadable entries). Returns removed count."""
        pass


class IReminderDocumentStore(ABC):
    """
    Server-side per-user reminder documents.

    Implementations: SQLiteReminderDocumentStore
    """

    @abstractmethod
    async def get(self, user_id: str, reminder_id: str) -> Reminder | None:
        pass

    @abstractmethod
    async def list_active(self, user_id: str) -> list[Reminder]:
        pass

    @abstractmethod
    async def put(self, user_id: str, reminder: Reminder) -> Reminder:
        """Insert or replace a whole document."""
        pass

    @abstractmethod
    async def delete(self, user_id: str, reminder_id: str) -> bool:
        pass


class IDeviceStore(ABC):
    """
    Server-side device registrations keyed per user.

    Implementations: SQLiteDeviceStore
    """

    @abstractmethod
    async def upsert(self, user_id: str, device: DeviceRegistration) -> DeviceRegistration:
        """Register or merge a device."""
        pass

    @abstractmethod
    async def get(self, user_id: str, device_id: str) -> DeviceRegistration | None:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[DeviceRegistration]:
        pass

    @abstractmethod
    async def touch(self, user_id: str, device_id: str, at: datetime) -> bool:
        """Update last_active_at. Returns False if unknown."""
        pass

    @abstractmethod
    async def delete(self, user_id: str, device_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_inactive_since(self, cutoff: datetime) -> int:
        """Remove registrations last active at or before ``cutoff``."""
        pass


class IDeviceRegistry(ABC):
    """
    Client-side view of this device's registration.

    Implementations: RemoteDeviceRegistry
    """

    @abstractmethod
    async def register(self, device: DeviceRegistration) -> DeviceRegistration:
        pass

    @abstractmethod
    async def touch(self, device_id: str, at: datetime) -> None:
        pass
