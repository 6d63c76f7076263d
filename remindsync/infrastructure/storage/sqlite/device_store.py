"""
SQLite implementation of push device registrations.
"""

from datetime import datetime, timezone

import aiosqlite

from remindsync.config import get_logger
from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.interfaces.storage import IDeviceStore
from remindsync.infrastructure.storage.sqlite.connection import ServerDatabase

logger = get_logger(__name__)


class SQLiteDeviceStore(IDeviceStore):
    """Device registrations keyed by (user, device)."""

    def __init__(self, database: ServerDatabase):
        self.database = database

    async def upsert(self, user_id: str, device: DeviceRegistration) -> DeviceRegistration:
        """Insert, or merge into the existing row keeping known optional fields."""
        async with self.database.write("upsert_device") as conn:
            await conn.execute(
                """
                INSERT INTO devices (
                    user_id, device_id, fcm_token, platform,
                    device_name, app_version, last_active_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, device_id) DO UPDATE SET
                    fcm_token = excluded.fcm_token,
                    platform = excluded.platform,
                    device_name = COALESCE(excluded.device_name, devices.device_name),
                    app_version = COALESCE(excluded.app_version, devices.app_version),
                    last_active_at = excluded.last_active_at
                """,
                (
                    user_id,
                    device.device_id,
                    device.fcm_token,
                    device.platform,
                    device.device_name,
                    device.app_version,
                    device.last_active_at.timestamp(),
                ),
            )
        logger.info("device_upserted", user_id=user_id, device_id=device.device_id)
        stored = await self.get(user_id, device.device_id)
        return stored or device

    async def get(self, user_id: str, device_id: str) -> DeviceRegistration | None:
        async with self.database.read() as conn:
            cursor = await conn.execute(
                "SELECT * FROM devices WHERE user_id = ? AND device_id = ?",
                (user_id, device_id),
            )
            row = await cursor.fetchone()
        return self._row_to_entity(row) if row else None

    async def list_for_user(self, user_id: str) -> list[DeviceRegistration]:
        async with self.database.read() as conn:
            cursor = await conn.execute(
                "SELECT * FROM devices WHERE user_id = ? ORDER BY device_id",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def touch(self, user_id: str, device_id: str, at: datetime) -> bool:
        async with self.database.write("touch_device") as conn:
            cursor = await conn.execute(
                "UPDATE devices SET last_active_at = ? WHERE user_id = ? AND device_id = ?",
                (at.timestamp(), user_id, device_id),
            )
            return cursor.rowcount > 0

    async def delete(self, user_id: str, device_id: str) -> bool:
        async with self.database.write("delete_device") as conn:
            cursor = await conn.execute(
                "DELETE FROM devices WHERE user_id = ? AND device_id = ?",
                (user_id, device_id),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("device_deleted", user_id=user_id, device_id=device_id)
        return deleted

    async def delete_inactive_since(self, cutoff: datetime) -> int:
        async with self.database.write("sweep_stale_devices") as conn:
            cursor = await conn.execute(
                "DELETE FROM devices WHERE last_active_at <= ?",
                (cutoff.timestamp(),),
            )
            return cursor.rowcount

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> DeviceRegistration:
        return DeviceRegistration(
            device_id=row["device_id"],
            fcm_token=row["fcm_token"],
            platform=row["platform"],
            device_name=row["device_name"],
            app_version=row["app_version"],
            last_active_at=datetime.fromtimestamp(row["last_active_at"], tz=timezone.utc),
        )
