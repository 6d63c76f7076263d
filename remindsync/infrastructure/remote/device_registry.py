"""Remote registration of this device for silent pushes."""

from datetime import datetime

from remindsync.config import get_logger
from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.exceptions import DeviceNotFoundError
from remindsync.core.interfaces.storage import IDeviceRegistry
from remindsync.infrastructure.remote.client import RemoteAPIClient

logger = get_logger(__name__)


class RemoteDeviceRegistry(IDeviceRegistry):
    """Device registration through the server API."""

    def __init__(self, client: RemoteAPIClient):
        self.client = client

    async def register(self, device: DeviceRegistration) -> DeviceRegistration:
        path = f"{self.client.user_path('register_device')}/devices/{device.device_id}"
        response = await self.client.request(
            "PUT",
            path,
            "register_device",
            json=device.model_dump(mode="json", exclude={"device_id"}),
        )
        return DeviceRegistration.model_validate(
            self.client.read_json(response, "register_device")
        )

    async def touch(self, device_id: str, at: datetime) -> None:
        path = f"{self.client.user_path('device_heartbeat')}/devices/{device_id}/heartbeat"
        await self.client.request(
            "POST",
            path,
            "device_heartbeat",
            json={"at": at.isoformat()},
            not_found=lambda: DeviceNotFoundError(device_id),
        )
