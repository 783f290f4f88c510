"""Builds the ordered provider chain from configuration."""

import logging

from pydantic import SecretStr

from relay_bot.config import Config
from relay_bot.core.providers.anthropic_provider import AnthropicProvider
from relay_bot.core.providers.base import ResponseProvider
from relay_bot.core.providers.gemini_provider import GeminiProvider
from relay_bot.core.providers.huggingface_provider import HuggingFaceProvider
from relay_bot.core.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def _secret(value: SecretStr | None) -> str | None:
    return value.get_secret_value() if value else None


def build_providers(config: Config) -> list[ResponseProvider]:
    """Create every provider in priority order.

    Paid, higher-capability backends come first and the free Hugging Face
    endpoint last. Providers without a key are still returned; the
    orchestrator skips them.
    """
    llm = config.llm
    name = config.assistant_name
    common = {"max_tokens": llm.max_tokens, "temperature": llm.temperature}

    providers: list[ResponseProvider] = [
        OpenAIProvider(
            _secret(llm.openai_api_key),
            name,
            model=llm.openai_model,
            timeout=llm.timeout_seconds,
            **common,
        ),
        AnthropicProvider(
            _secret(llm.anthropic_api_key),
            name,
            model=llm.anthropic_model,
            timeout=llm.timeout_seconds,
            **common,
        ),
        GeminiProvider(
            _secret(llm.google_api_key),
            name,
            model=llm.gemini_model,
            timeout=llm.timeout_seconds,
            **common,
        ),
        HuggingFaceProvider(
            _secret(llm.huggingface_api_key),
            name,
            model=llm.huggingface_model,
            timeout=llm.timeout_seconds,
        ),
    ]

    for provider in providers:
        status = "initialized" if provider.available else "no API key, skipping"
        logger.info(f"Provider {provider.name}: {status}")
    if not any(p.available for p in providers):
        logger.info("No provider API keys found, using local responses only")

    return providers
