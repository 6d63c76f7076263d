"""Tests for the APScheduler-backed alert center."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import NOW
from remindsync.core.entities import utc_now
from remindsync.core.interfaces.notifications import AlertRequest
from remindsync.infrastructure.notifications import APSchedulerNotificationCenter


def _request(identifier: str = "r1", fire_at=None) -> AlertRequest:
    return AlertRequest(
        identifier=identifier,
        fire_at=fire_at or NOW + timedelta(hours=1),
        title="Water plants",
        payload={"reminderId": identifier, "title": "Water plants"},
    )


class TestAPSchedulerNotificationCenter:
    """Alert bookkeeping without a running scheduler."""

    @pytest.fixture(autouse=True)
    def _setup(self):
        self.center = APSchedulerNotificationCenter()

    async def test_add_and_list(self):
        await self.center.add(_request("a"))
        await self.center.add(_request("b"))
        assert sorted(await self.center.pending_identifiers()) == ["a", "b"]

    async def test_add_replaces_same_id(self):
        await self.center.add(_request("a"))
        await self.center.add(_request("a", NOW + timedelta(hours=5)))
        assert await self.center.pending_identifiers() == ["a"]

    async def test_remove_pending_ignores_unknown(self):
        await self.center.add(_request("a"))
        await self.center.remove_pending(["a", "ghost"])
        assert await self.center.pending_identifiers() == []

    async def test_remove_all_pending(self):
        await self.center.add(_request("a"))
        await self.center.add(_request("b"))
        await self.center.remove_all_pending()
        assert await self.center.pending_identifiers() == []

    async def test_deliver_records_and_calls_back(self):
        callback = AsyncMock()
        self.center.on_deliver = callback
        request = _request("a")

        await self.center._deliver(request)

        assert self.center.delivered_identifiers() == ["a"]
        callback.assert_awaited_once_with(request)

        await self.center.remove_delivered(["a"])
        assert self.center.delivered_identifiers() == []

    async def test_badge(self):
        await self.center.set_badge(3)
        assert self.center.badge == 3


class TestAPSchedulerDelivery:
    """Alerts fire on a running scheduler."""

    async def test_fires_at_instant(self):
        fired = asyncio.Event()

        async def on_deliver(request: AlertRequest) -> None:
            fired.set()

        center = APSchedulerNotificationCenter(on_deliver=on_deliver)
        center.start()
        try:
            await center.add(_request("soon", utc_now() + timedelta(milliseconds=100)))
            await asyncio.wait_for(fired.wait(), 5)
        finally:
            center.shutdown()

        assert center.delivered_identifiers() == ["soon"]
        assert await center.pending_identifiers() == []
