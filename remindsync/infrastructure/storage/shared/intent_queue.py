"""
Pending-intent queue in shared storage.

Append-only from the extension's side; the primary process removes only
the entries it has dealt with, so intents appended while a drain is in
progress survive it.
"""

import json

from remindsync.config import get_logger
from remindsync.core.entities.extension import PendingExtensionAction
from remindsync.core.interfaces.storage import IIntentQueue
from remindsync.infrastructure.storage.shared.codec import (
    action_to_record,
    decode_actions,
)
from remindsync.infrastructure.storage.shared.kv import SharedStorage

logger = get_logger(__name__)


class SharedIntentQueue(IIntentQueue):
    """Intent log under its own key, independent of the reminder array."""

    def __init__(self, storage: SharedStorage, key: str = "yomo_pending_extension_actions"):
        self.storage = storage
        self.key = key

    async def append(self, action: PendingExtensionAction) -> None:
        def add(raw: str | None) -> str:
            records = [record for record, _ in decode_actions(raw)]
            records.append(action_to_record(action))
            return json.dumps(records, ensure_ascii=False)

        await self.storage.update(self.key, add)

    async def peek_all(self) -> list[PendingExtensionAction]:
        pairs = decode_actions(await self.storage.read(self.key))
        return [action for _, action in pairs if action is not None]

    async def acknowledge(self, intent_ids: list[str]) -> int:
        done = set(intent_ids)
        removed = 0

        def keep_rest(raw: str | None) -> str:
            nonlocal removed
            kept = []
            for record, action in decode_actions(raw):
                if action is None or action.intent_id in done:
                    removed += 1
                    continue
                kept.append(record)
            return json.dumps(kept, ensure_ascii=False)

        await self.storage.update(self.key, keep_rest)
        if removed:
            logger.debug("intents_acknowledged", removed=removed)
        return removed

    async def size(self) -> int:
        return len(await self.peek_all())
