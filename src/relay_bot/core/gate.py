"""Heuristic response gate for deciding whether the assistant should speak."""

import logging
import random
import re
from dataclasses import dataclass

from relay_bot.config import GateConfig
from relay_bot.core.logging import get_session_stats

logger = logging.getLogger(__name__)

# Explicit addressing prefixes (matched against the lowercased message)
COMMAND_PREFIXES = ("/ai ", "@ai ", "/help")
HELP_KEYWORD = "help"

QUESTION_PATTERN = re.compile(
    r"\b(what|how|why|when|where|who|can you|could you|would you|will you)\b",
    re.IGNORECASE,
)
GREETING_PATTERN = re.compile(
    r"\b(hi|hello|hey|greetings|good morning|good afternoon)\b",
    re.IGNORECASE,
)
ASSISTANT_PATTERN = re.compile(
    r"\b(bot|ai|chatbot|assistant|help)\b",
    re.IGNORECASE,
)


@dataclass
class GateFactors:
    """Deterministic signals found in a message."""

    addressed: bool = False  # "/ai ...", "@ai ...", "/help" or exactly "help"
    is_question: bool = False
    is_greeting: bool = False
    mentions_assistant: bool = False
    from_self: bool = False

    @property
    def any(self) -> bool:
        return self.addressed or self.is_question or self.is_greeting or self.mentions_assistant

    def __str__(self) -> str:
        parts = []
        if self.addressed:
            parts.append("addressed")
        if self.is_question:
            parts.append("question")
        if self.is_greeting:
            parts.append("greeting")
        if self.mentions_assistant:
            parts.append("mention")
        if self.from_self:
            parts.append("self")
        return f"GateFactors({', '.join(parts) or 'none'})"


@dataclass
class GateResult:
    """Result of the gate decision."""

    should_respond: bool
    factors: GateFactors
    roll: float | None  # None when a deterministic factor decided

    def __bool__(self) -> bool:
        return self.should_respond

    def __str__(self) -> str:
        status = "PASS" if self.should_respond else "FAIL"
        roll = "-" if self.roll is None else f"{self.roll:.3f}"
        return f"Gate[{status}]: roll={roll}, {self.factors}"


class ResponseGate:
    """Decides whether the assistant should respond to a message.

    Any deterministic factor (direct address, question, greeting, mention of
    the assistant) passes the gate. Otherwise a random roll below
    ``idle_prob`` lets the assistant chime in now and then.
    """

    def __init__(
        self,
        config: GateConfig,
        assistant_name: str | None = None,
        rng: random.Random | None = None,
    ):
        self._config = config
        self._assistant_name = assistant_name.lower() if assistant_name else None
        self._rng = rng or random.Random()

    def _check_addressed(self, lowered: str) -> bool:
        return lowered.startswith(COMMAND_PREFIXES) or lowered == HELP_KEYWORD

    def _check_question(self, message: str) -> bool:
        return "?" in message or QUESTION_PATTERN.search(message) is not None

    def analyze_factors(self, message: str, sender: str) -> GateFactors:
        """Analyze a message and return the deterministic factors."""
        lowered = message.lower()
        return GateFactors(
            addressed=self._check_addressed(lowered),
            is_question=self._check_question(message),
            is_greeting=GREETING_PATTERN.search(message) is not None,
            mentions_assistant=ASSISTANT_PATTERN.search(message) is not None,
            from_self=(
                self._assistant_name is not None
                and sender.lower() == self._assistant_name
            ),
        )

    def check(self, message: str, sender: str, _roll: float | None = None) -> GateResult:
        """Decide whether to respond, keeping the reasoning.

        Args:
            message: The message text
            sender: Who sent it
            _roll: Override random roll (for testing)

        Returns:
            GateResult with decision and metadata
        """
        factors = self.analyze_factors(message, sender)

        if factors.from_self:
            result = GateResult(should_respond=False, factors=factors, roll=None)
        elif factors.any:
            result = GateResult(should_respond=True, factors=factors, roll=None)
        else:
            roll = _roll if _roll is not None else self._rng.random()
            result = GateResult(
                should_respond=roll < self._config.idle_prob,
                factors=factors,
                roll=roll,
            )

        logger.info(f"GATE: {result}")

        stats = get_session_stats()
        if result.should_respond:
            stats.increment("gate_passes")
        else:
            stats.increment("gate_fails")

        return result

    def should_respond(self, message: str, sender: str) -> bool:
        """Return True if the assistant should respond to this message."""
        return self.check(message, sender).should_respond
