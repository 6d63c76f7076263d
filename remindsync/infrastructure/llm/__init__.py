"""AI reminder parsing providers."""

from remindsync.infrastructure.llm.base import BaseAIReminderParser, CircuitBreakerState
from remindsync.infrastructure.llm.claude import ClaudeReminderParser
from remindsync.infrastructure.llm.openai import OpenAIReminderParser

__all__ = [
    "BaseAIReminderParser",
    "CircuitBreakerState",
    "ClaudeReminderParser",
    "OpenAIReminderParser",
]
