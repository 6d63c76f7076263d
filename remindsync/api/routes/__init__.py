"""API route modules."""

from remindsync.api.routes.devices import router as devices_router
from remindsync.api.routes.health import router as health_router
from remindsync.api.routes.reminders import router as reminders_router

__all__ = [
    "health_router",
    "reminders_router",
    "devices_router",
]
