"""
Push device registration endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from remindsync.api.dependencies import get_device_registry
from remindsync.application.dto.requests import HeartbeatRequest, RegisterDeviceRequest
from remindsync.application.dto.responses import DeviceResponse, ErrorResponse
from remindsync.application.use_cases import DeviceRegistryUseCase

router = APIRouter(prefix="/api/users/{user_id}/devices", tags=["devices"])


@router.put("/{device_id}", response_model=DeviceResponse)
async def register_device(
    user_id: str,
    device_id: str,
    request: RegisterDeviceRequest,
    registry: DeviceRegistryUseCase = Depends(get_device_registry),
) -> DeviceResponse:
    """Register a device or merge a new token into its registration."""
    device = await registry.register(user_id, device_id, request)
    return DeviceResponse.from_entity(device)


@router.post(
    "/{device_id}/heartbeat",
    response_model=DeviceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def device_heartbeat(
    user_id: str,
    device_id: str,
    request: HeartbeatRequest | None = None,
    registry: DeviceRegistryUseCase = Depends(get_device_registry),
) -> DeviceResponse:
    at = request.at if request is not None else None
    return DeviceResponse.from_entity(await registry.heartbeat(user_id, device_id, at))


@router.get("", response_model=list[DeviceResponse])
async def list_devices(
    user_id: str,
    registry: DeviceRegistryUseCase = Depends(get_device_registry),
) -> list[DeviceResponse]:
    return [DeviceResponse.from_entity(d) for d in await registry.list_devices(user_id)]


@router.delete(
    "/{device_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def remove_device(
    user_id: str,
    device_id: str,
    registry: DeviceRegistryUseCase = Depends(get_device_registry),
) -> Response:
    await registry.remove(user_id, device_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
