"""
Client side of cross-device sync.

Registers this device for silent pushes and reacts to them. Payload fields
are only hints: every push ends with a re-read of the authoritative store.
"""

from datetime import datetime

from pydantic import ValidationError

from remindsync.config import get_logger
from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.reminder import utc_now
from remindsync.core.entities.sync import PushPayload, SyncAction
from remindsync.core.exceptions import RemindSyncError
from remindsync.core.interfaces.storage import IDeviceRegistry, IReminderStore
from remindsync.core.services.notification_scheduler import AlertState, NotificationScheduler

logger = get_logger(__name__)


class DeviceSyncService:
    """Device registration, heartbeat and silent-push handling."""

    def __init__(
        self,
        registry: IDeviceRegistry,
        store: IReminderStore,
        scheduler: NotificationScheduler,
        device_id: str,
        platform: str = "ios",
        device_name: str | None = None,
        app_version: str | None = None,
    ):
        self.registry = registry
        self.store = store
        self.scheduler = scheduler
        self.device_id = device_id
        self.platform = platform
        self.device_name = device_name
        self.app_version = app_version

    async def register_device(
        self, fcm_token: str, now: datetime | None = None
    ) -> DeviceRegistration:
        registration = DeviceRegistration(
            device_id=self.device_id,
            fcm_token=fcm_token,
            platform=self.platform,
            device_name=self.device_name,
            app_version=self.app_version,
            last_active_at=now or utc_now(),
        )
        stored = await self.registry.register(registration)
        logger.info("device_registered", device_id=self.device_id, platform=self.platform)
        return stored

    async def update_last_active(self, now: datetime | None = None) -> None:
        try:
            await self.registry.touch(self.device_id, now or utc_now())
        except RemindSyncError as e:
            logger.warning("device_heartbeat_failed", device_id=self.device_id, error=str(e))

    async def handle_silent_push(
        self, data: dict, now: datetime | None = None
    ) -> PushPayload | None:
        """
        React to a wake signal.

        Completed and deleted reminders lose their alert at once; snoozed
        ones are rescheduled from the re-read record. Unknown payloads still
        trigger the re-read.
        """
        try:
            payload = PushPayload.from_data(data)
        except (KeyError, ValidationError) as e:
            logger.warning("silent_push_unreadable", error=str(e))
            payload = None

        if payload is not None:
            logger.info(
                "silent_push_received",
                action=payload.action.value,
                reminder_id=payload.reminder_id,
            )
            if payload.action == SyncAction.COMPLETED:
                await self.scheduler.cancel(payload.reminder_id, outcome=AlertState.COMPLETED)
            elif payload.action == SyncAction.DELETED:
                await self.scheduler.cancel(payload.reminder_id)
            elif payload.action == SyncAction.SNOOZED:
                await self.scheduler.cancel(payload.reminder_id)

        try:
            await self.store.refresh()
            if payload is not None and payload.action == SyncAction.SNOOZED:
                current = await self.store.get(payload.reminder_id)
                if current is not None:
                    await self.scheduler.schedule_or_reschedule(current, now)
        except RemindSyncError as e:
            logger.warning("silent_push_refresh_failed", error=str(e))
        return payload
