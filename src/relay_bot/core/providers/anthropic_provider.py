"""Anthropic Claude provider."""

import logging
from collections.abc import Sequence
from typing import Any

import anthropic

from relay_bot.core.context import HistoryEntry
from relay_bot.core.logging import log_llm_call
from relay_bot.core.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    ResponseProvider,
    history_to_chat_messages,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(ResponseProvider):
    """Generates replies with a Claude model."""

    name = "Anthropic"

    def __init__(
        self,
        api_key: str | None,
        assistant_name: str = "ChatBot AI",
        model: str = "claude-3-5-haiku-latest",
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
            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client

    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        system_prompt = self.system_prompt(sender)

        # The conversation must open with a user turn
        past = history_to_chat_messages(history)
        while past and past[0]["role"] != "user":
            past.pop(0)
        messages = [*past, {"role": "user", "content": message}]

        log_llm_call(
            provider=self.name,
            model=self._model,
            system_prompt=system_prompt,
            user_prompt=message,
            history=[m["content"] for m in past],
        )

        response = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            system=system_prompt,
            messages=messages,
        )

        texts = [block.text for block in response.content if block.type == "text"]
        return "".join(texts)
