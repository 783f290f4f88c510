"""Logging utilities for relay-bot."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Generator

# AI debug mode flag
_ai_debug: bool = False
_ai_debug_lock = Lock()


def set_ai_debug(enabled: bool) -> None:
    """Enable or disable AI debug logging."""
    global _ai_debug
    with _ai_debug_lock:
        _ai_debug = enabled


def is_ai_debug() -> bool:
    """Check if AI debug logging is enabled."""
    with _ai_debug_lock:
        return _ai_debug


# Dedicated logger for AI debug output
_ai_logger = logging.getLogger("relay_bot.ai_debug")


def log_llm_call(
    provider: str,
    model: str,
    system_prompt: str | None = None,
    user_prompt: str | None = None,
    history: list[str] | None = None,
) -> None:
    """Log the input to a provider call when AI debug is enabled."""
    if not is_ai_debug():
        return

    parts = [
        f"\n{'='*80}",
        f"LLM CALL: {provider}",
        f"Model: {model}",
        f"{'='*80}",
    ]

    if system_prompt:
        parts.append(f"\n--- SYSTEM PROMPT ---\n{system_prompt}")

    if history:
        parts.append("\n--- HISTORY ---\n" + "\n".join(history))

    if user_prompt:
        parts.append(f"\n--- USER PROMPT ---\n{user_prompt}")

    _ai_logger.info("\n".join(parts))


def log_llm_response(provider: str, response_text: str | None = None) -> None:
    """Log the output from a provider call when AI debug is enabled."""
    if not is_ai_debug():
        return

    parts = [
        f"\n{'-'*80}",
        f"LLM RESPONSE: {provider}",
        f"{'-'*80}",
        f"\n--- RESPONSE TEXT ---\n{response_text or '<empty>'}",
        f"{'='*80}\n",
    ]

    _ai_logger.info("\n".join(parts))


@dataclass
class SessionStats:
    """Cumulative statistics for a session.

    Thread-safe counters for tracking assistant activity metrics.
    """

    messages_received: int = 0
    gate_passes: int = 0
    gate_fails: int = 0
    intercepts: int = 0
    provider_successes: int = 0
    provider_failures: int = 0
    local_fallbacks: int = 0
    apologies: int = 0
    contexts_swept: int = 0
    api_calls: dict[str, int] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock, repr=False)

    def increment(self, stat: str, amount: int = 1) -> None:
        """Increment a stat counter."""
        with self._lock:
            if hasattr(self, stat) and stat != "_lock":
                current = getattr(self, stat)
                if isinstance(current, int):
                    setattr(self, stat, current + amount)

    def increment_api_call(self, provider: str) -> None:
        """Track an API call to a specific provider."""
        with self._lock:
            self.api_calls[provider] = self.api_calls.get(provider, 0) + 1

    def summary(self) -> dict[str, Any]:
        """Return a summary of all stats."""
        with self._lock:
            total_gate = self.gate_passes + self.gate_fails
            return {
                "received": self.messages_received,
                "gate_rate": f"{100 * self.gate_passes / max(1, total_gate):.0f}%",
                "intercepts": self.intercepts,
                "provider_successes": self.provider_successes,
                "provider_failures": self.provider_failures,
                "local_fallbacks": self.local_fallbacks,
                "apologies": self.apologies,
                "api_calls": dict(self.api_calls),
            }

    def summary_line(self) -> str:
        """Return a single-line summary for logging."""
        with self._lock:
            total_gate = self.gate_passes + self.gate_fails
            gate_pct = 100 * self.gate_passes / max(1, total_gate)

            return (
                f"received={self.messages_received} gate_rate={gate_pct:.0f}% "
                f"providers_ok={self.provider_successes} "
                f"providers_failed={self.provider_failures} "
                f"local={self.local_fallbacks} apologies={self.apologies}"
            )


# Global session stats instance
_session_stats: SessionStats | None = None
_stats_lock = Lock()


def get_session_stats() -> SessionStats:
    """Get the global session stats instance."""
    global _session_stats
    with _stats_lock:
        if _session_stats is None:
            _session_stats = SessionStats()
        return _session_stats


def reset_session_stats() -> None:
    """Reset session stats (mainly for testing)."""
    global _session_stats
    with _stats_lock:
        _session_stats = SessionStats()


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str
) -> Generator[None, None, None]:
    """Context manager for timing operations.

    Logs at DEBUG level on completion.

    Example:
        with log_timing(logger, "Response generation"):
            text = await orchestrator.respond(...)
        # Logs: "Response generation completed in 1.23ms"
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"{operation} completed in {elapsed_ms:.2f}ms")
