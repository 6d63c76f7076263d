"""OpenAI chat completions provider."""

from remindsync.config import get_logger
from remindsync.core.exceptions import AIParsingError
from remindsync.infrastructure.llm.base import BaseAIReminderParser

logger = get_logger(__name__)


class OpenAIReminderParser(BaseAIReminderParser):
    """Parses reminders with an OpenAI chat model."""

    provider_name = "openai"

    async def _complete(self, prompt: str) -> str:
        response = await self._client.post(
            f"{self.settings.openai_base_url.rstrip('/')}/v1/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key or ''}"},
            json={
                "model": self.settings.openai_model,
                "max_tokens": self.settings.max_tokens,
                "temperature": 0,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        if response.status_code != 200:
            raise AIParsingError(
                self.name, f"HTTP {response.status_code}", status_code=response.status_code
            )
        try:
            text = response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIParsingError(self.name, f"unexpected envelope: {e}") from e

        logger.debug("openai_reply", model=self.settings.openai_model, reply_len=len(text))
        return text
