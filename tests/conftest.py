"""Pytest configuration and fixtures."""

import asyncio
import random
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import pytest

from relay_bot.chat.models import OutboundMessage
from relay_bot.config import Config, GateConfig, TypingConfig
from relay_bot.core import HistoryEntry, ResponseProvider
from relay_bot.core.logging import SessionStats, get_session_stats, reset_session_stats


class FakeProvider(ResponseProvider):
    """Provider returning a canned reply, raising, or hanging."""

    def __init__(
        self,
        name: str,
        reply: str | None = "fake reply",
        error: Exception | None = None,
        delay: float = 0.0,
        api_key: str | None = "test-key",
        timeout: float = 10.0,
    ):
        super().__init__(api_key, timeout=timeout)
        self.name = name
        self._reply = reply
        self._error = error
        self._delay = delay
        self.calls: list[tuple[str, str, tuple[HistoryEntry, ...]]] = []

    async def _generate(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry],
    ) -> str | None:
        self.calls.append((message, sender, tuple(history)))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._reply


class RecordingTransport:
    """Transport that records everything the coordinator emits."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    @property
    def sent(self) -> list[OutboundMessage]:
        return [data for event, data in self.events if event == "send"]

    async def typing(self, name: str) -> None:
        self.events.append(("typing", name))

    async def stop_typing(self) -> None:
        self.events.append(("stop_typing", None))

    async def send(self, message: OutboundMessage) -> None:
        self.events.append(("send", message))


@pytest.fixture
def stats() -> SessionStats:
    """Zeroed session stats for tests that assert on counters."""
    reset_session_stats()
    return get_session_stats()


@pytest.fixture
def default_config() -> Config:
    """Provide a default configuration for testing."""
    return Config()


@pytest.fixture
def gate_config() -> GateConfig:
    """Gate config whose idle roll never passes."""
    return GateConfig(idle_prob=0.0)


@pytest.fixture
def no_delay_typing() -> TypingConfig:
    return TypingConfig(
        pre_delay_seconds=0.0,
        post_delay_min_seconds=0.0,
        post_delay_max_seconds=0.0,
        welcome_delay_seconds=0.0,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 3, 9, 14, 5, 9)
    return lambda: moment


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_content = """
assistant_name: "TestBot"

server:
  host: "127.0.0.1"
  port: 8123

llm:
  openai_api_key: "test-key"
  timeout_seconds: 5

gate:
  idle_prob: 0.1

context:
  max_history: 4

typing:
  pre_delay_seconds: 0.25
"""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_content)
    return config_path
