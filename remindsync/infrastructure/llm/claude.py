"""Anthropic messages API provider."""

from remindsync.config import get_logger
from remindsync.core.exceptions import AIParsingError
from remindsync.infrastructure.llm.base import BaseAIReminderParser

logger = get_logger(__name__)


class ClaudeReminderParser(BaseAIReminderParser):
    """Parses reminders with a Claude model."""

    provider_name = "claude"

    async def _complete(self, prompt: str) -> str:
        response = await self._client.post(
            f"{self.settings.claude_base_url.rstrip('/')}/v1/messages",
            headers={
                "x-api-key": self.api_key or "",
                "anthropic-version": self.settings.anthropic_version,
                "content-type": "application/json",
            },
            json={
                "model": self.settings.claude_model,
                "max_tokens": self.settings.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        if response.status_code != 200:
            raise AIParsingError(
                self.name, f"HTTP {response.status_code}", status_code=response.status_code
            )
        try:
            blocks = response.json()["content"]
            text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise AIParsingError(self.name, f"unexpected envelope: {e}") from e

        logger.debug("claude_reply", model=self.settings.claude_model, reply_len=len(text))
        return text
