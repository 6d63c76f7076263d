"""
Reminder parsing orchestration.

Relative-time phrases are resolved locally without a network call. Other
text goes to the configured AI providers in order, each under a timeout;
anything but a well-formed answer falls back to the local extractor.
When requests overlap, only the newest one produces a result.
"""

import asyncio
from datetime import datetime

from remindsync.config import get_logger
from remindsync.core.entities.parsing import AIParsed, AIUnavailable, ReminderDraft
from remindsync.core.entities.reminder import local_now
from remindsync.core.interfaces.parser import IAIReminderParser
from remindsync.core.services.local_extractor import parse_locally
from remindsync.core.services.time_expression import TimeExpressionParser

logger = get_logger(__name__)


class ReminderParsingService:
    """Free text to reminder draft."""

    def __init__(
        self,
        ai_parsers: list[IAIReminderParser] | None = None,
        time_parser: TimeExpressionParser | None = None,
        timeout_seconds: float = 8.0,
        ai_enabled: bool = True,
    ):
        self.ai_parsers = ai_parsers or []
        self.time_parser = time_parser or TimeExpressionParser()
        self.timeout_seconds = timeout_seconds
        self.ai_enabled = ai_enabled

        self._generation = 0
        self._inflight: asyncio.Future[ReminderDraft] | None = None

    async def parse(self, text: str, now: datetime | None = None) -> ReminderDraft | None:
        """
        Parse ``text``, abandoning any older request still in flight.

        Returns:
            The draft, or None if a newer request superseded this one
        """
        self._generation += 1
        generation = self._generation

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        task = asyncio.ensure_future(self.resolve(text, now))
        self._inflight = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if generation != self._generation or task.cancelled():
            logger.debug("parse_superseded", generation=generation)
            return None
        return task.result()

    async def resolve(self, text: str, now: datetime | None = None) -> ReminderDraft:
        """Parse without the newest-wins bookkeeping."""
        now = now or local_now()

        if self.time_parser.match(text, now) is not None:
            return parse_locally(text, now, self.time_parser)

        if self.ai_enabled:
            for parser in self.ai_parsers:
                try:
                    outcome = await asyncio.wait_for(
                        parser.parse(text, now), timeout=self.timeout_seconds
                    )
                except asyncio.TimeoutError:
                    outcome = AIUnavailable(provider=parser.name, reason="timeout")

                if isinstance(outcome, AIParsed):
                    logger.info("reminder_parsed_by_ai", provider=outcome.provider)
                    return outcome.draft
                logger.info(
                    "ai_parse_fallback",
                    provider=outcome.provider,
                    kind=outcome.kind,
                    reason=outcome.reason,
                )

        return parse_locally(text, now, self.time_parser)
