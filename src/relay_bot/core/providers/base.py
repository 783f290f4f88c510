"""Generation provider interface.

Each backend implements one ``ResponseProvider``. The base class owns the
parts every backend shares: the timeout, turning any failure into
``ProviderError``, and rejecting empty replies. Providers never retry;
falling back to the next provider is the orchestrator's job.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from relay_bot.core.context import HistoryEntry, Role
from relay_bot.core.logging import get_session_stats, log_llm_response
from relay_bot.personalities import get_assistant_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ProviderError(Exception):
    """A provider could not produce a reply."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class ResponseProvider(ABC):
    """One text-generation backend."""

    name: str = "provider"

    def __init__(
        self,
        api_key: str | None,
        assistant_name: str = "ChatBot AI",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._api_key = api_key or None
        self._assistant_name = assistant_name
        self._timeout = timeout

    @property
    def available(self) -> bool:
        """True when the provider's credential is configured."""
        return self._api_key is not None

    def system_prompt(self, sender: str) -> str:
        return get_assistant_prompt(self._assistant_name, sender)

    async def generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry] = (),
    ) -> str:
        """Generate a reply.

        Args:
            message: The message to respond to
            sender: Who sent it
            history: Earlier entries of this conversation, oldest first

        Returns:
            Non-empty reply text

        Raises:
            ProviderError: On timeout, transport failure or an empty payload
        """
        if not self.available:
            raise ProviderError(self.name, "not configured")

        try:
            text = await asyncio.wait_for(
                self._generate(message, sender, history), timeout=self._timeout
            )
        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise ProviderError(self.name, f"timed out after {self._timeout:.1f}s") from e
        except Exception as e:
            raise ProviderError(self.name, str(e) or type(e).__name__) from e
        finally:
            get_session_stats().increment_api_call(self.name)

        text = (text or "").strip()
        log_llm_response(self.name, text)
        if not text:
            raise ProviderError(self.name, "empty response")
        return text

    @abstractmethod
    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        """Call the backend and return its raw reply text."""


def history_to_chat_messages(history: Sequence[HistoryEntry]) -> list[dict[str, str]]:
    """Convert history to the role/content list chat APIs expect."""
    messages = []
    for entry in history:
        if entry.role == Role.USER:
            messages.append({"role": "user", "content": f"{entry.sender}: {entry.text}"})
        else:
            messages.append({"role": "assistant", "content": entry.text})
    return messages


def format_history(history: Sequence[HistoryEntry], assistant_name: str) -> str:
    """Format history as chat-log lines for single-prompt APIs.

    Returns a string like:
    [12:34] <Alice> Hello!
    [12:34] <ChatBot AI> Hi Alice!
    """
    lines = []
    for entry in history:
        who = entry.sender if entry.role == Role.USER else assistant_name
        lines.append(f"[{entry.timestamp.strftime('%H:%M')}] <{who}> {entry.text}")
    return "\n".join(lines)
