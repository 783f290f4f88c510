"""Google Gemini provider."""

import logging
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import types

from relay_bot.core.context import HistoryEntry
from relay_bot.core.logging import log_llm_call
from relay_bot.core.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    ResponseProvider,
    format_history,
)

logger = logging.getLogger(__name__)


class GeminiProvider(ResponseProvider):
    """Generates replies with a Gemini model."""

    name = "Gemini"

    def __init__(
        self,
        api_key: str | None,
        assistant_name: str = "ChatBot AI",
        model: str = "gemini-2.0-flash",
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
            client = genai.Client(api_key=api_key)
        self._client = client

    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        system_prompt = self.system_prompt(sender)
        recent = format_history(history, self._assistant_name) or "(no earlier messages)"

        user_prompt = f"""Recent conversation:
{recent}

User message from {sender}: "{message}"

Please respond as the assistant:"""

        log_llm_call(
            provider=self.name,
            model=self._model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )

        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self._temperature,
                max_output_tokens=self._max_tokens,
            ),
        )
        return response.text
