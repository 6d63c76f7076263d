"""
Active-set broadcasting.

Each subscriber owns a one-slot mailbox that always holds only the newest
active set, so consumers process snapshots one at a time and never see a
stale set after a newer one. Closing a subscription stops delivery
immediately, even if a snapshot is waiting in the mailbox.
"""

import asyncio
from collections.abc import Awaitable, Callable

from remindsync.config import get_logger
from remindsync.core.entities.reminder import Reminder
from remindsync.core.exceptions import RemindSyncError
from remindsync.core.interfaces.storage import ActiveSubscription

logger = get_logger(__name__)

_CLOSED = object()


class QueueSubscription(ActiveSubscription):
    """Subscription backed by a one-slot asyncio queue."""

    def __init__(
        self,
        broadcaster: "ActiveSetBroadcaster",
        primer: Callable[[], Awaitable[object]] | None = None,
    ):
        self._broadcaster = broadcaster
        self._primer = primer
        self._mailbox: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, item: object) -> None:
        """Replace whatever is waiting with ``item``."""
        if self._closed and item is not _CLOSED:
            return
        while not self._mailbox.empty():
            self._mailbox.get_nowait()
        self._mailbox.put_nowait(item)

    async def __anext__(self) -> list[Reminder]:
        if self._closed:
            raise StopAsyncIteration

        if self._primer is not None:
            primer, self._primer = self._primer, None
            if self._mailbox.empty():
                try:
                    await primer()
                except RemindSyncError as e:
                    logger.warning("subscription_initial_load_failed", error=str(e))

        item = await self._mailbox.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)
        self.offer(_CLOSED)


class ActiveSetBroadcaster:
    """Fans one stream of active sets out to any number of subscribers."""

    def __init__(
        self,
        on_first_subscriber: Callable[[], None] | None = None,
        on_last_unsubscribe: Callable[[], None] | None = None,
    ):
        self._subscribers: list[QueueSubscription] = []
        self._latest: list[Reminder] | None = None
        self._on_first_subscriber = on_first_subscriber
        self._on_last_unsubscribe = on_last_unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def latest(self) -> list[Reminder] | None:
        return self._latest

    def subscribe(
        self, primer: Callable[[], Awaitable[object]] | None = None
    ) -> QueueSubscription:
        """
        New subscription. It receives the last published set right away,
        or, if nothing was published yet, ``primer`` runs on first read.
        """
        subscription = QueueSubscription(self, primer=primer)
        if self._latest is not None:
            subscription.offer(list(self._latest))
        self._subscribers.append(subscription)
        if len(self._subscribers) == 1 and self._on_first_subscriber is not None:
            self._on_first_subscriber()
        return subscription

    def unsubscribe(self, subscription: QueueSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            if not self._subscribers and self._on_last_unsubscribe is not None:
                self._on_last_unsubscribe()

    def publish(self, active: list[Reminder]) -> None:
        self._latest = list(active)
        for subscription in list(self._subscribers):
            subscription.offer(list(active))

    async def close_all(self) -> None:
        for subscription in list(self._subscribers):
            await subscription.close()
