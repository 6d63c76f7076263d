"""Tests for the Claude and OpenAI reminder parsers."""

import json

import httpx
import pytest

from conftest import NOW
from remindsync.config.settings import ParserSettings
from remindsync.core.entities import AIParsed, AIUnavailable, MalformedResponse
from remindsync.core.exceptions import CircuitBreakerOpenError
from remindsync.infrastructure.llm import (
    CircuitBreakerState,
    ClaudeReminderParser,
    OpenAIReminderParser,
)

REPLY = json.dumps(
    {
        "title": "Call the dentist",
        "date": "2025-03-14",
        "time": "10:00",
        "recurrence_type": "none",
    }
)


def _claude_body(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def _openai_body(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


@pytest.fixture
def parser_settings() -> ParserSettings:
    return ParserSettings(max_retries=1, failure_threshold=2, cooldown_seconds=60)


class TestClaudeReminderParser:
    """Tests for ClaudeReminderParser."""

    async def test_parsed(self, parser_settings: ParserSettings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_claude_body(REPLY))

        parser = ClaudeReminderParser(
            parser_settings, "key", transport=httpx.MockTransport(handler)
        )
        outcome = await parser.parse("call the dentist friday at 10", NOW)
        await parser.close()

        assert isinstance(outcome, AIParsed)
        assert outcome.draft.title == "Call the dentist"
        assert seen[0].url.path == "/v1/messages"
        assert seen[0].headers["x-api-key"] == "key"
        assert json.loads(seen[0].content)["model"] == parser_settings.claude_model

    async def test_no_key(self, parser_settings: ParserSettings):
        parser = ClaudeReminderParser(parser_settings, None)

        outcome = await parser.parse("anything", NOW)

        assert isinstance(outcome, AIUnavailable)
        assert outcome.reason == "not configured"
        await parser.close()

    async def test_client_error_unavailable(self, parser_settings: ParserSettings):
        parser = ClaudeReminderParser(
            parser_settings, "key", transport=httpx.MockTransport(lambda r: httpx.Response(400))
        )

        outcome = await parser.parse("anything", NOW)

        assert isinstance(outcome, AIUnavailable)
        assert not parser.circuit_breaker.is_open
        await parser.close()

    async def test_server_errors_open_breaker(self, parser_settings: ParserSettings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(529)

        parser = ClaudeReminderParser(
            parser_settings, "key", transport=httpx.MockTransport(handler)
        )

        for _ in range(3):
            outcome = await parser.parse("anything", NOW)
            assert isinstance(outcome, AIUnavailable)

        assert parser.circuit_breaker.is_open
        assert len(calls) == 2
        await parser.close()

    async def test_transport_error_unavailable(self, parser_settings: ParserSettings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        parser = ClaudeReminderParser(
            parser_settings, "key", transport=httpx.MockTransport(handler)
        )

        outcome = await parser.parse("anything", NOW)

        assert isinstance(outcome, AIUnavailable)
        assert parser.circuit_breaker.failures == 1
        await parser.close()

    async def test_unexpected_envelope(self, parser_settings: ParserSettings):
        parser = ClaudeReminderParser(
            parser_settings,
            "key",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"id": "x"})),
        )
        assert isinstance(await parser.parse("anything", NOW), AIUnavailable)
        await parser.close()

    async def test_malformed_reply(self, parser_settings: ParserSettings):
        parser = ClaudeReminderParser(
            parser_settings,
            "key",
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json=_claude_body("I'd rather not."))
            ),
        )
        assert isinstance(await parser.parse("anything", NOW), MalformedResponse)
        await parser.close()


class TestOpenAIReminderParser:
    """Tests for OpenAIReminderParser."""

    async def test_parsed(self, parser_settings: ParserSettings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_openai_body(REPLY))

        parser = OpenAIReminderParser(
            parser_settings, "sk", transport=httpx.MockTransport(handler)
        )
        outcome = await parser.parse("call the dentist friday at 10", NOW)
        await parser.close()

        assert isinstance(outcome, AIParsed)
        assert outcome.provider == "openai"
        assert seen[0].url.path == "/v1/chat/completions"
        assert seen[0].headers["Authorization"] == "Bearer sk"

    async def test_empty_choices(self, parser_settings: ParserSettings):
        parser = OpenAIReminderParser(
            parser_settings,
            "sk",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []})),
        )
        assert isinstance(await parser.parse("anything", NOW), AIUnavailable)
        await parser.close()


class TestCircuitBreakerState:
    def test_opens_at_threshold(self):
        breaker = CircuitBreakerState(failure_threshold=2)
        breaker.record_failure()
        breaker.check()
        breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            breaker.check()

    def test_half_open_after_cooldown(self):
        breaker = CircuitBreakerState(failure_threshold=1, cooldown_seconds=0)
        breaker.record_failure()
        breaker.check()

    def test_success_resets(self):
        breaker = CircuitBreakerState(failure_threshold=1)
        breaker.record_failure()
        breaker.record_success()
        assert not breaker.is_open
        assert breaker.failures == 0
