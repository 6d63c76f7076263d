"""
Extension bridge.

The notification extension runs in its own process with no network and no
access to the remote backend. It edits the shared local snapshot directly
and appends an intent for every change. The primary process drains those
intents on each foreground transition and, when the remote backend is
live, replays them there.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from remindsync.config import get_logger
from remindsync.core.entities.extension import ExtensionActionType, PendingExtensionAction
from remindsync.core.entities.reminder import Reminder, utc_now
from remindsync.core.exceptions import (
    ReminderNotFoundError,
    RemindSyncError,
    SchedulingFailedError,
)
from remindsync.core.interfaces.notifications import AlertRequest, INotificationCenter
from remindsync.core.interfaces.storage import IIntentQueue, IReminderStore
from remindsync.core.services.notification_scheduler import alert_payload
from remindsync.core.services.reminder_lifecycle import (
    apply_completion,
    apply_snooze,
    same_instant,
)

logger = get_logger(__name__)


def clamp_snooze_minutes(
    minutes: int | None, default: int = 15, low: int = 1, high: int = 60
) -> int:
    """Snooze slider bounds."""
    if minutes is None:
        return default
    return max(low, min(high, minutes))


class ExtensionBridge:
    """State changes made from a delivered alert, without the primary app."""

    def __init__(
        self,
        snapshot: IReminderStore,
        intents: IIntentQueue,
        center: INotificationCenter,
        default_snooze_minutes: int = 15,
        min_snooze_minutes: int = 1,
        max_snooze_minutes: int = 60,
    ):
        self.snapshot = snapshot
        self.intents = intents
        self.center = center
        self.default_snooze_minutes = default_snooze_minutes
        self.min_snooze_minutes = min_snooze_minutes
        self.max_snooze_minutes = max_snooze_minutes

    async def complete_locally(
        self, reminder_id: str, now: datetime | None = None
    ) -> Reminder | None:
        """Complete in the shared snapshot. Returns None if it is not there."""
        now = now or utc_now()
        reminder = await self.snapshot.get(reminder_id)
        if reminder is None:
            logger.info("extension_reminder_not_in_snapshot", reminder_id=reminder_id)
            return None
        updated = apply_completion(reminder, now)
        if updated is not reminder:
            await self.snapshot.update(updated)
        return updated

    async def snooze_locally(
        self,
        reminder_id: str,
        until: datetime,
        title: str | None = None,
        now: datetime | None = None,
    ) -> Reminder | None:
        """Set the snooze instant in the shared snapshot and re-alert at it."""
        now = now or utc_now()
        reminder = await self.snapshot.get(reminder_id)
        updated = None
        if reminder is not None:
            updated = apply_snooze(reminder, until, now)
            if updated is not reminder:
                await self.snapshot.update(updated)
            title = title or reminder.title

        try:
            await self.center.remove_pending([reminder_id])
            await self.center.add(
                AlertRequest(
                    identifier=reminder_id,
                    fire_at=until,
                    title=title or "Reminder",
                    payload=alert_payload(reminder_id, title or "Reminder"),
                )
            )
        except SchedulingFailedError as e:
            logger.warning("extension_alert_failed", reminder_id=reminder_id, error=str(e))
        return updated

    async def enqueue_intent(
        self,
        action_type: ExtensionActionType,
        reminder_id: str,
        snooze_date: datetime | None = None,
        anchor_trigger: datetime | None = None,
    ) -> PendingExtensionAction:
        """Append an intent. Existing entries are never touched."""
        action = PendingExtensionAction(
            type=action_type,
            reminder_id=reminder_id,
            snooze_date=snooze_date,
            anchor_trigger=anchor_trigger,
        )
        await self.intents.append(action)
        logger.info(
            "extension_intent_enqueued",
            intent_id=action.intent_id,
            action=action_type.value,
            reminder_id=reminder_id,
        )
        return action

    async def handle_complete(self, reminder_id: str, now: datetime | None = None) -> None:
        """Complete button."""
        now = now or utc_now()
        before = await self.snapshot.get(reminder_id)
        await self.complete_locally(reminder_id, now)
        await self.enqueue_intent(
            ExtensionActionType.COMPLETE,
            reminder_id,
            anchor_trigger=before.trigger_date if before is not None else None,
        )

    async def handle_snooze(
        self,
        reminder_id: str,
        minutes: int | None = None,
        title: str | None = None,
        now: datetime | None = None,
    ) -> datetime:
        """Snooze button with the slider value."""
        now = now or utc_now()
        minutes = clamp_snooze_minutes(
            minutes,
            self.default_snooze_minutes,
            self.min_snooze_minutes,
            self.max_snooze_minutes,
        )
        until = now + timedelta(minutes=minutes)
        await self.snooze_locally(reminder_id, until, title=title, now=now)
        await self.enqueue_intent(ExtensionActionType.SNOOZE, reminder_id, snooze_date=until)
        return until


@dataclass
class DrainReport:
    """Outcome of one drain pass."""

    replayed: int = 0
    skipped: int = 0
    remaining: int = 0
    cleared_without_replay: int = 0


class IntentReplayer:
    """
    Primary-process side of the bridge.

    Replays queued intents in order and acknowledges only those that were
    applied or can never apply. The first failure stops the pass and
    leaves it and everything after it queued for the next attempt.
    """

    def __init__(self, intents: IIntentQueue, store: IReminderStore):
        self.intents = intents
        self.store = store

    async def drain_pending_intents(self, now: datetime | None = None) -> DrainReport:
        now = now or utc_now()
        report = DrainReport()
        actions = await self.intents.peek_all()
        if not actions:
            return report

        if not self.store.is_remote:
            # Shared storage already holds the extension's writes
            await self.intents.acknowledge([a.intent_id for a in actions])
            report.cleared_without_replay = len(actions)
            logger.info("intents_cleared_local_backend", count=len(actions))
            return report

        done: list[str] = []
        for action in actions:
            try:
                applied = await self.replay(action, now)
            except ReminderNotFoundError:
                logger.info(
                    "intent_target_missing",
                    intent_id=action.intent_id,
                    reminder_id=action.reminder_id,
                )
                applied = False
            except RemindSyncError as e:
                logger.warning(
                    "intent_replay_failed",
                    intent_id=action.intent_id,
                    reminder_id=action.reminder_id,
                    error=str(e),
                )
                break
            done.append(action.intent_id)
            if applied:
                report.replayed += 1
            else:
                report.skipped += 1

        if done:
            await self.intents.acknowledge(done)
        report.remaining = len(actions) - len(done)
        logger.info(
            "intents_drained",
            replayed=report.replayed,
            skipped=report.skipped,
            remaining=report.remaining,
        )
        return report

    async def replay(self, action: PendingExtensionAction, now: datetime) -> bool:
        """
        Apply one intent to the store.

        Returns:
            False when the intent is already reflected and was skipped
        """
        reminder = await self.store.get(action.reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(action.reminder_id)
        if not reminder.is_active:
            return False

        if action.type == ExtensionActionType.COMPLETE:
            if action.anchor_trigger is not None and not same_instant(
                action.anchor_trigger, reminder.trigger_date
            ):
                # Already advanced past the occurrence the user completed
                return False
            await self.store.complete(action.reminder_id, now)
            return True

        if same_instant(reminder.snoozed_until, action.snooze_date):
            return False
        await self.store.snooze(action.reminder_id, action.snooze_date)
        return True
