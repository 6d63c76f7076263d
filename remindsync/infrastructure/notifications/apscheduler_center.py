"""
Alert center on APScheduler.

Each pending alert is a one-off DateTrigger job whose id is the reminder
id. When a job fires, the alert moves to the delivered set and the
delivery callback runs.
"""

from collections.abc import Awaitable, Callable
from datetime import timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from remindsync.config import get_logger
from remindsync.core.exceptions import SchedulingFailedError
from remindsync.core.interfaces.notifications import AlertRequest, INotificationCenter

logger = get_logger(__name__)

DeliveryCallback = Callable[[AlertRequest], Awaitable[None]]


class APSchedulerNotificationCenter(INotificationCenter):
    """Scheduled alerts backed by an AsyncIOScheduler."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        on_deliver: DeliveryCallback | None = None,
    ):
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self.on_deliver = on_deliver
        self.badge = 0
        self._delivered: dict[str, AlertRequest] = {}

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("notification_center_started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("notification_center_stopped")

    async def add(self, request: AlertRequest) -> None:
        try:
            self.scheduler.add_job(
                self._deliver,
                trigger=DateTrigger(run_date=request.fire_at),
                args=[request],
                id=request.identifier,
                name=f"reminder:{request.title[:30]}",
                replace_existing=True,
                misfire_grace_time=None,
            )
        except (ValueError, LookupError, TypeError) as e:
            raise SchedulingFailedError(request.identifier, str(e)) from e

    async def remove_pending(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            try:
                self.scheduler.remove_job(identifier)
            except JobLookupError:
                continue

    async def remove_delivered(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self._delivered.pop(identifier, None)

    async def remove_all_pending(self) -> None:
        self.scheduler.remove_all_jobs()

    async def pending_identifiers(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs()]

    def delivered_identifiers(self) -> list[str]:
        return list(self._delivered)

    async def set_badge(self, count: int) -> None:
        self.badge = count

    async def _deliver(self, request: AlertRequest) -> None:
        self._delivered[request.identifier] = request
        logger.info(
            "alert_fired",
            reminder_id=request.identifier,
            title=request.title,
            subtitle=request.subtitle,
        )
        if self.on_deliver is not None:
            await self.on_deliver(request)
