"""OpenAI chat completions provider."""

import logging
from collections.abc import Sequence
from typing import Any

from openai import AsyncOpenAI

from relay_bot.core.context import HistoryEntry
from relay_bot.core.logging import log_llm_call
from relay_bot.core.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    ProviderError,
    ResponseProvider,
    history_to_chat_messages,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(ResponseProvider):
    """Generates replies with an OpenAI chat model."""

    name = "OpenAI"

    def __init__(
        self,
        api_key: str | None,
        assistant_name: str = "ChatBot AI",
        model: str = "gpt-3.5-turbo",
        max_tokens: int = 150,
        temperature: float = 0.7,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Any = None,
    ):
        super().__init__(api_key, assistant_name, timeout)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        if client is None and self.available:
            # Retries are the fallback chain's business
            client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client

    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        system_prompt = self.system_prompt(sender)
        messages = [
            {"role": "system", "content": system_prompt},
            *history_to_chat_messages(history),
            {"role": "user", "content": message},
        ]

        log_llm_call(
            provider=self.name,
            model=self._model,
            system_prompt=system_prompt,
            user_prompt=message,
            history=[m["content"] for m in messages[1:-1]],
        )

        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            presence_penalty=0.1,
            frequency_penalty=0.1,
        )

        if not completion.choices:
            raise ProviderError(self.name, "no choices in response")
        return completion.choices[0].message.content
