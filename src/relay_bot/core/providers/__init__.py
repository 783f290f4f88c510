"""Text-generation provider adapters."""

from .anthropic_provider import AnthropicProvider
from .base import ProviderError, ResponseProvider
from .gemini_provider import GeminiProvider
from .huggingface_provider import HuggingFaceProvider
from .openai_provider import OpenAIProvider
from .registry import build_providers

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "HuggingFaceProvider",
    "OpenAIProvider",
    "ProviderError",
    "ResponseProvider",
    "build_providers",
]
