"""Device registration entity for push fan-out."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, field_validator

from remindsync.core.entities.reminder import ensure_aware, utc_now


class DeviceRegistration(BaseModel):
    """
    One push-capable device of a user.

    Keyed per user by ``device_id``; pruned when stale or when a push to
    its token hard-fails.
    """

    device_id: str = Field(min_length=1)
    fcm_token: str = Field(min_length=1)
    platform: str = "ios"
    device_name: str | None = None
    app_version: str | None = None
    last_active_at: datetime = Field(default_factory=utc_now)

    @field_validator("last_active_at")
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        """Inactive for at least ``max_age``."""
        return now - self.last_active_at >= max_age
