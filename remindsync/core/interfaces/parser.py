"""
Abstract interface for network-backed reminder parsing.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from remindsync.core.entities.parsing import AIParseOutcome


class IAIReminderParser(ABC):
    """
    Optional accuracy booster for free-text parsing.

    Implementations: ClaudeReminderParser, OpenAIReminderParser
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def parse(self, text: str, now: datetime) -> AIParseOutcome:
        """Never raises; every failure is reported as an outcome variant."""
        pass

    async def close(self) -> None:
        pass
