"""
Base AI reminder parser with retry and circuit breaker patterns.

Provides resilience patterns for all AI provider implementations and
turns every failure into a tagged outcome instead of an exception.
"""

import time
from abc import abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from remindsync.config import get_logger
from remindsync.config.settings import ParserSettings
from remindsync.core.entities.parsing import AIParseOutcome, AIUnavailable
from remindsync.core.exceptions import AIParsingError, CircuitBreakerOpenError
from remindsync.core.interfaces.parser import IAIReminderParser
from remindsync.infrastructure.llm.response import build_prompt, interpret_response

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class CircuitBreakerState:
    """State for circuit breaker pattern."""

    provider: str = "ai"
    failures: int = 0
    last_failure_time: float = 0.0
    is_open: bool = False
    cooldown_seconds: int = 60
    failure_threshold: int = 3

    def record_failure(self) -> None:
        """Record a failure and potentially open the circuit."""
        self.failures += 1
        self.last_failure_time = time.time()

        if self.failures >= self.failure_threshold:
            self.is_open = True
            logger.warning(
                "circuit_breaker_opened",
                provider=self.provider,
                failures=self.failures,
                cooldown=self.cooldown_seconds,
            )

    def record_success(self) -> None:
        """Record a success and reset the circuit."""
        if self.is_open:
            logger.info("circuit_breaker_closed", provider=self.provider)
        self.failures = 0
        self.is_open = False

    def check(self) -> None:
        """
        Check if circuit allows requests.

        Raises CircuitBreakerOpenError if circuit is open and cooldown not elapsed.
        """
        if not self.is_open:
            return

        elapsed = time.time() - self.last_failure_time
        if elapsed < self.cooldown_seconds:
            raise CircuitBreakerOpenError(self.provider, int(self.cooldown_seconds - elapsed))

        # Cooldown elapsed, allow one request (half-open state)
        logger.info("circuit_breaker_half_open", provider=self.provider)


class BaseAIReminderParser(IAIReminderParser):
    """
    Base class for AI providers.

    Provides:
    - Automatic retries with exponential backoff on transport errors
    - Circuit breaker for cascading failure prevention
    - Mapping of every failure onto an outcome variant
    """

    provider_name = "ai"

    def __init__(
        self,
        settings: ParserSettings,
        api_key: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.api_key = api_key
        self.circuit_breaker = CircuitBreakerState(
            provider=self.provider_name,
            failure_threshold=settings.failure_threshold,
            cooldown_seconds=settings.cooldown_seconds,
        )
        self._client = httpx.AsyncClient(timeout=settings.timeout_seconds, transport=transport)

    @property
    def name(self) -> str:
        return self.provider_name

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """
        Send the prompt and return the model's reply text.

        Raises:
            AIParsingError: On any non-200 status or unexpected envelope
        """
        pass

    async def parse(self, text: str, now: datetime) -> AIParseOutcome:
        if not self.api_key:
            return AIUnavailable(provider=self.name, reason="not configured")
        try:
            body = await self._with_resilience(self._complete, build_prompt(text, now))
        except (AIParsingError, CircuitBreakerOpenError) as e:
            logger.info("ai_parse_unavailable", provider=self.name, error=e.message)
            return AIUnavailable(provider=self.name, reason=e.message)
        return interpret_response(self.name, body, text)

    def _get_retry_decorator(self) -> Any:
        return retry(
            stop=stop_after_attempt(self.settings.max_retries),
            wait=wait_exponential(
                multiplier=self.settings.retry_delay,
                min=self.settings.retry_delay,
                max=self.settings.retry_delay * (self.settings.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "ai_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _with_resilience(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """
        Execute operation with retry and circuit breaker.

        Raises:
            CircuitBreakerOpenError: If circuit is open
            AIParsingError: If the provider is unreachable or answered non-200
        """
        self.circuit_breaker.check()

        try:
            result = await self._get_retry_decorator()(operation)(*args)
        except httpx.TransportError as e:
            self.circuit_breaker.record_failure()
            raise AIParsingError(self.name, f"{type(e).__name__}: {e}") from e
        except AIParsingError as e:
            if (e.details.get("status_code") or 0) >= 500:
                self.circuit_breaker.record_failure()
            raise

        self.circuit_breaker.record_success()
        return result

    async def close(self) -> None:
        await self._client.aclose()
