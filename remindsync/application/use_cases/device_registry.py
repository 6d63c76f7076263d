"""
Device Registry Use Case.

Registration, heartbeat and removal of a user's push devices.
"""

from datetime import datetime

from remindsync.application.dto.requests import RegisterDeviceRequest
from remindsync.config import get_logger
from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.reminder import utc_now
from remindsync.core.exceptions import DeviceNotFoundError
from remindsync.core.interfaces.storage import IDeviceStore

logger = get_logger(__name__)


class DeviceRegistryUseCase:
    """Server side of device registration."""

    def __init__(self, devices: IDeviceStore):
        self.devices = devices

    async def register(
        self,
        user_id: str,
        device_id: str,
        request: RegisterDeviceRequest,
        now: datetime | None = None,
    ) -> DeviceRegistration:
        """Merge write; known name and version survive a registration without them."""
        device = DeviceRegistration(
            device_id=device_id,
            fcm_token=request.fcm_token,
            platform=request.platform,
            device_name=request.device_name,
            app_version=request.app_version,
            last_active_at=request.last_active_at or now or utc_now(),
        )
        return await self.devices.upsert(user_id, device)

    async def heartbeat(
        self, user_id: str, device_id: str, at: datetime | None = None
    ) -> DeviceRegistration:
        if not await self.devices.touch(user_id, device_id, at or utc_now()):
            raise DeviceNotFoundError(device_id)
        device = await self.devices.get(user_id, device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device

    async def list_devices(self, user_id: str) -> list[DeviceRegistration]:
        return await self.devices.list_for_user(user_id)

    async def remove(self, user_id: str, device_id: str) -> None:
        if not await self.devices.delete(user_id, device_id):
            raise DeviceNotFoundError(device_id)
        logger.info("device_removed", user_id=user_id, device_id=device_id)
