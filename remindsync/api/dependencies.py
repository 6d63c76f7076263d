"""
Dependency providers for FastAPI.

Route handlers get their collaborators from the container the lifespan
stores on ``app.state``; tests override these providers.
"""

from fastapi import Depends, Request

from remindsync.application.services import ServerServices
from remindsync.application.use_cases import DeviceRegistryUseCase, ReminderDocumentsUseCase
from remindsync.core.exceptions import ConfigurationError
from remindsync.core.services import SyncFanout


def get_services(request: Request) -> ServerServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ConfigurationError("Server services are not initialized")
    return services


def get_reminders(services: ServerServices = Depends(get_services)) -> ReminderDocumentsUseCase:
    return services.reminders


def get_device_registry(services: ServerServices = Depends(get_services)) -> DeviceRegistryUseCase:
    return services.device_registry


def get_fanout(services: ServerServices = Depends(get_services)) -> SyncFanout:
    return services.fanout
