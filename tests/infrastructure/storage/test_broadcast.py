"""Tests for active-set broadcasting."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_reminder
from remindsync.core.exceptions import StorageError
from remindsync.infrastructure.storage.broadcast import ActiveSetBroadcaster


class TestActiveSetBroadcaster:
    """Tests for ActiveSetBroadcaster and its subscriptions."""

    async def test_slow_consumer_sees_only_newest(self):
        broadcaster = ActiveSetBroadcaster()
        subscription = broadcaster.subscribe()
        a, b = make_reminder("a"), make_reminder("b")

        broadcaster.publish([a])
        broadcaster.publish([a, b])

        assert await asyncio.wait_for(subscription.__anext__(), 1) == [a, b]

    async def test_late_subscriber_gets_latest(self):
        broadcaster = ActiveSetBroadcaster()
        reminder = make_reminder()
        broadcaster.publish([reminder])

        subscription = broadcaster.subscribe()

        assert await asyncio.wait_for(subscription.__anext__(), 1) == [reminder]

    async def test_primer_runs_when_nothing_published(self):
        broadcaster = ActiveSetBroadcaster()
        reminder = make_reminder()

        async def primer():
            broadcaster.publish([reminder])

        subscription = broadcaster.subscribe(primer=primer)

        assert await asyncio.wait_for(subscription.__anext__(), 1) == [reminder]

    async def test_primer_failure_waits_for_next_publish(self):
        broadcaster = ActiveSetBroadcaster()
        subscription = broadcaster.subscribe(primer=AsyncMock(side_effect=StorageError("down")))

        pending = asyncio.ensure_future(subscription.__anext__())
        await asyncio.sleep(0)
        broadcaster.publish([])

        assert await asyncio.wait_for(pending, 1) == []

    async def test_close_stops_waiting_reader(self):
        broadcaster = ActiveSetBroadcaster()
        subscription = broadcaster.subscribe()
        reader = asyncio.ensure_future(subscription.__anext__())
        await asyncio.sleep(0)

        await subscription.close()

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(reader, 1)
        assert subscription.closed
        assert broadcaster.subscriber_count == 0

    async def test_close_discards_queued_set(self):
        broadcaster = ActiveSetBroadcaster()
        subscription = broadcaster.subscribe()
        broadcaster.publish([make_reminder()])

        await subscription.close()
        broadcaster.publish([make_reminder()])

        with pytest.raises(StopAsyncIteration):
            await subscription.__anext__()

    async def test_first_and_last_subscriber_hooks(self):
        first, last = MagicMock(), MagicMock()
        broadcaster = ActiveSetBroadcaster(on_first_subscriber=first, on_last_unsubscribe=last)

        one = broadcaster.subscribe()
        two = broadcaster.subscribe()
        await one.close()
        last.assert_not_called()
        await two.close()

        first.assert_called_once()
        last.assert_called_once()

    async def test_async_iteration(self):
        broadcaster = ActiveSetBroadcaster()
        seen = []

        async with broadcaster.subscribe() as subscription:
            broadcaster.publish([make_reminder()])
            async for active in subscription:
                seen.append(active)
                break

        assert len(seen) == 1
        assert subscription.closed
