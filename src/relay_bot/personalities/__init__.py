"""Assistant persona definitions."""

from .assistant import get_assistant_prompt

__all__ = ["get_assistant_prompt"]
