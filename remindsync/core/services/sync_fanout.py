"""
Server-side change fan-out.

Classifies a write on a user's reminder document from its before/after
snapshots and sends a silent wake signal to every registered device of
that user. Delivery is best-effort; tokens the push service reports as
dead are pruned.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from remindsync.config import get_logger
from remindsync.core.entities.device import DeviceRegistration
from remindsync.core.entities.reminder import Reminder, ReminderStatus, utc_now
from remindsync.core.entities.sync import PushPayload, SyncAction
from remindsync.core.exceptions import PushDeliveryError, RemindSyncError
from remindsync.core.interfaces.notifications import IPushSender
from remindsync.core.interfaces.storage import IDeviceStore
from remindsync.core.services.reminder_lifecycle import same_instant

logger = get_logger(__name__)


def classify(before: Reminder | None, after: Reminder | None) -> PushPayload | None:
    """
    Classify a document write.

    Priority: created, deleted, completed (active to completed), snoozed
    (trigger date or snooze instant changed), updated.
    """
    if before is None and after is None:
        return None

    if before is None:
        return PushPayload(
            action=SyncAction.CREATED,
            reminder_id=after.id,
            title=after.title,
            trigger_date=after.trigger_date,
        )

    if after is None:
        return PushPayload(action=SyncAction.DELETED, reminder_id=before.id, title=before.title)

    if before.status == ReminderStatus.ACTIVE and after.status == ReminderStatus.COMPLETED:
        return PushPayload(action=SyncAction.COMPLETED, reminder_id=after.id, title=after.title)

    if not same_instant(before.trigger_date, after.trigger_date) or not same_instant(
        before.snoozed_until, after.snoozed_until
    ):
        candidates = [after.trigger_date]
        if after.snoozed_until is not None:
            candidates.append(after.snoozed_until)
        return PushPayload(
            action=SyncAction.SNOOZED,
            reminder_id=after.id,
            title=after.title,
            new_trigger_date=max(candidates),
        )

    return PushPayload(
        action=SyncAction.UPDATED,
        reminder_id=after.id,
        title=after.title,
        trigger_date=after.trigger_date,
    )


@dataclass
class FanoutReport:
    """Result of one fan-out."""

    action: SyncAction | None = None
    sent: int = 0
    failed: int = 0
    pruned: list[str] = field(default_factory=list)


class SyncFanout:
    """Wakes a user's devices after a reminder write."""

    def __init__(
        self,
        devices: IDeviceStore,
        sender: IPushSender,
        stale_after: timedelta = timedelta(days=30),
    ):
        self.devices = devices
        self.sender = sender
        self.stale_after = stale_after

    async def on_reminder_written(
        self,
        user_id: str,
        before: Reminder | None,
        after: Reminder | None,
    ) -> FanoutReport:
        payload = classify(before, after)
        if payload is None:
            return FanoutReport()
        return await self.fan_out(user_id, payload)

    async def fan_out(self, user_id: str, payload: PushPayload) -> FanoutReport:
        """Send ``payload`` to every device of the user, the writer's included."""
        report = FanoutReport(action=payload.action)
        devices = await self.devices.list_for_user(user_id)
        if not devices:
            logger.debug("fanout_no_devices", user_id=user_id, action=payload.action.value)
            return report

        data = payload.to_data()
        await asyncio.gather(
            *(self._deliver(user_id, device, data, report) for device in devices)
        )

        logger.info(
            "fanout_complete",
            user_id=user_id,
            action=payload.action.value,
            reminder_id=payload.reminder_id,
            sent=report.sent,
            failed=report.failed,
            pruned=len(report.pruned),
        )
        return report

    async def _deliver(
        self,
        user_id: str,
        device: DeviceRegistration,
        data: dict[str, str],
        report: FanoutReport,
    ) -> None:
        """Send to one device; failures never affect the other devices."""
        try:
            await self.sender.send(device.fcm_token, data)
            report.sent += 1
            return
        except PushDeliveryError as e:
            report.failed += 1
            if not e.invalid_token:
                logger.warning(
                    "push_delivery_failed",
                    user_id=user_id,
                    device_id=device.device_id,
                    error=str(e),
                )
                return

        try:
            await self.devices.delete(user_id, device.device_id)
        except RemindSyncError as e:
            logger.warning(
                "device_prune_failed",
                user_id=user_id,
                device_id=device.device_id,
                error=str(e),
            )
            return
        report.pruned.append(device.device_id)
        logger.info("device_pruned_invalid_token", user_id=user_id, device_id=device.device_id)

    async def sweep_stale_devices(self, now: datetime | None = None) -> int:
        """Delete registrations inactive for at least ``stale_after``."""
        now = now or utc_now()
        cutoff = now - self.stale_after
        try:
            removed = await self.devices.delete_inactive_since(cutoff)
        except RemindSyncError as e:
            logger.error("stale_device_sweep_failed", error=str(e))
            raise
        logger.info("stale_devices_swept", removed=removed, cutoff=cutoff)
        return removed
