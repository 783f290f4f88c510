"""Hugging Face Inference API provider (free tier, tried last)."""

import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from relay_bot.core.context import HistoryEntry, Role
from relay_bot.core.logging import log_llm_call
from relay_bot.core.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    ProviderError,
    ResponseProvider,
)

logger = logging.getLogger(__name__)

INFERENCE_URL = "https://api-inference.huggingface.co/models"


class HuggingFaceProvider(ResponseProvider):
    """Generates replies with a conversational model on the Inference API."""

    name = "HuggingFace"

    def __init__(
        self,
        api_key: str | None,
        assistant_name: str = "ChatBot AI",
        model: str = "microsoft/DialoGPT-medium",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        base_url: str = INFERENCE_URL,
    ):
        super().__init__(api_key, assistant_name, timeout)
        self._url = f"{base_url.rstrip('/')}/{model}"
        self._model = model

    def build_payload(self, message: str, history: Sequence[HistoryEntry]) -> dict[str, Any]:
        """Build the conversational payload from paired user/assistant turns."""
        past_user_inputs: list[str] = []
        generated_responses: list[str] = []
        pending: str | None = None
        for entry in history:
            if entry.role == Role.USER:
                pending = entry.text
            elif pending is not None:
                past_user_inputs.append(pending)
                generated_responses.append(entry.text)
                pending = None

        return {
            "inputs": {
                "past_user_inputs": past_user_inputs,
                "generated_responses": generated_responses,
                "text": message,
            }
        }

    @staticmethod
    def parse_response(data: Any) -> str | None:
        """Pull ``generated_text`` out of an object or a one-item list."""
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict):
            text = data.get("generated_text")
            if isinstance(text, str):
                return text
        return None

    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        payload = self.build_payload(message, history)
        log_llm_call(provider=self.name, model=self._model, user_prompt=message)

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self._url, json=payload, headers=headers) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise ProviderError(self.name, f"HTTP {response.status}: {body[:200]}")
                data = await response.json(content_type=None)

        text = self.parse_response(data)
        if not text or not text.strip():
            raise ProviderError(self.name, "no generated_text in response")
        return f"{text.strip()} 🤖"
