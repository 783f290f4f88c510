"""Fallback chain across generation providers, ending in the local responder."""

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from relay_bot.core.context import HistoryEntry
from relay_bot.core.local import LocalResponder
from relay_bot.core.logging import get_session_stats
from relay_bot.core.providers.base import ProviderError, ResponseProvider

logger = logging.getLogger(__name__)

ADDRESS_PREFIXES = ("/ai ", "@ai ")
HELP_COMMANDS = ("/help", "help")

JOKES = (
    "Why don't scientists trust atoms? Because they make up everything! 😄",
    "I told my computer a joke about UDP... I'm not sure if it got it! 💻😂",
    "Why do programmers prefer dark mode? Because light attracts bugs! 🐛💡",
    "What's a computer's favorite snack? Microchips! 🍪💻",
    "Why did the AI break up with the database? There were too many relationship issues! 💔📊",
)


@dataclass
class FallbackResult:
    """Reply text plus where it came from."""

    text: str
    source: str  # "intercept:<name>", a provider name, or "local"
    failures: tuple[ProviderError, ...] = ()


class FallbackOrchestrator:
    """Produces a reply for every message, whatever the providers do.

    Fixed commands (help, time, date, jokes) are answered directly. Everything
    else goes to the providers in order; the first one that answers wins.
    When none is configured or all of them fail, the local responder answers.
    """

    def __init__(
        self,
        providers: Sequence[ResponseProvider],
        local: LocalResponder | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._providers = list(providers)
        self._rng = rng or random.Random()
        self._local = local or LocalResponder(self._rng)
        self._clock = clock

    @property
    def providers(self) -> list[ResponseProvider]:
        return list(self._providers)

    @property
    def available_providers(self) -> list[ResponseProvider]:
        return [p for p in self._providers if p.available]

    def _intercept(self, message: str, sender: str) -> tuple[str, str] | None:
        """Answer fixed commands. Returns (name, text) or None."""
        lowered = message.lower()

        if lowered in HELP_COMMANDS:
            return "help", self._local.respond(message, sender)

        if lowered == "/time" or "what time" in lowered:
            now = self._clock()
            return "time", f"🕐 Current time: {now.strftime('%H:%M:%S')}, {sender}!"

        if lowered == "/date" or "what date" in lowered:
            now = self._clock()
            return "date", f"📅 Today's date: {now.strftime('%A, %B %d, %Y')}, {sender}!"

        if "joke" in lowered or "funny" in lowered:
            return "joke", self._rng.choice(JOKES)

        return None

    async def respond_detailed(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry] = (),
    ) -> FallbackResult:
        """Generate a reply and report which stage produced it."""
        stats = get_session_stats()

        if message.lower().startswith(ADDRESS_PREFIXES):
            message = message[len(ADDRESS_PREFIXES[0]):].strip()

        intercepted = self._intercept(message, sender)
        if intercepted is not None:
            name, text = intercepted
            logger.info(f"INTERCEPT [{name}] for {sender}")
            stats.increment("intercepts")
            return FallbackResult(text=text, source=f"intercept:{name}")

        failures: list[ProviderError] = []
        for provider in self._providers:
            if not provider.available:
                continue
            logger.info(f"PROVIDER [{provider.name}]: trying for {message[:60]!r}")
            try:
                text = await provider.generate(message, sender, history)
            except ProviderError as e:
                logger.warning(f"PROVIDER [{provider.name}] failed: {e.message}")
                stats.increment("provider_failures")
                failures.append(e)
                continue
            except Exception as e:
                logger.exception(f"PROVIDER [{provider.name}] raised unexpectedly")
                stats.increment("provider_failures")
                failures.append(ProviderError(provider.name, str(e) or type(e).__name__))
                continue

            if not text or not text.strip():
                logger.warning(f"PROVIDER [{provider.name}] returned empty text")
                stats.increment("provider_failures")
                failures.append(ProviderError(provider.name, "empty response"))
                continue

            logger.info(f"PROVIDER [{provider.name}] responded")
            stats.increment("provider_successes")
            return FallbackResult(text=text, source=provider.name, failures=tuple(failures))

        logger.info("Using local responses")
        stats.increment("local_fallbacks")
        return FallbackResult(
            text=self._local.respond(message, sender),
            source="local",
            failures=tuple(failures),
        )

    async def respond(
        self,
        message: str,
        sender: str,
        history: Sequence[HistoryEntry] = (),
    ) -> str:
        """Generate a reply. Never raises."""
        result = await self.respond_detailed(message, sender, history)
        return result.text
