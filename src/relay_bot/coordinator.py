"""Coordinator tying the gate, context store and fallback chain together."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from relay_bot.chat.models import Message, OutboundMessage
from relay_bot.config import Config, TypingConfig
from relay_bot.core import (
    ConversationContextStore,
    FallbackOrchestrator,
    HistoryEntry,
    LocalResponder,
    ResponseGate,
    build_providers,
)
from relay_bot.core.logging import get_session_stats, log_timing

logger = logging.getLogger(__name__)

# How often to log session stats (every N messages)
STATS_LOG_INTERVAL = 50

APOLOGY_TEMPLATE = "Sorry {sender}, I'm having trouble processing that right now. Please try again! 🤖⚠️"
WELCOME_TEMPLATE = "Hi {sender}! I'm your friendly AI assistant. Feel free to ask me questions or just chat! 🤖✨"


class Transport(Protocol):
    """Delivers assistant output to the chat participants."""

    async def typing(self, name: str) -> None: ...

    async def stop_typing(self) -> None: ...

    async def send(self, message: OutboundMessage) -> None: ...


@dataclass
class ProcessingResult:
    """Result of processing a message."""

    responded: bool
    text: str | None = None
    source: str = ""  # Which stage produced the text
    gate_passed: bool = False
    apologized: bool = False
    reason: str = ""


class Coordinator:
    """Runs the per-message pipeline and talks to the transport."""

    def __init__(
        self,
        assistant_name: str,
        gate: ResponseGate,
        store: ConversationContextStore,
        orchestrator: FallbackOrchestrator,
        transport: Transport,
        typing: TypingConfig | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.assistant_name = assistant_name
        self._gate = gate
        self._store = store
        self._orchestrator = orchestrator
        self._transport = transport
        self._typing = typing or TypingConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: Transport,
        store: ConversationContextStore | None = None,
        rng: random.Random | None = None,
    ) -> "Coordinator":
        """Build a coordinator and its collaborators from configuration."""
        rng = rng or random.Random()
        name = config.assistant_name
        orchestrator = FallbackOrchestrator(
            build_providers(config),
            local=LocalResponder(rng),
            rng=rng,
        )
        return cls(
            assistant_name=name,
            gate=ResponseGate(config.gate, assistant_name=name, rng=rng),
            store=store or ConversationContextStore(config.context),
            orchestrator=orchestrator,
            transport=transport,
            typing=config.typing,
            rng=rng,
        )

    @property
    def store(self) -> ConversationContextStore:
        return self._store

    async def handle(self, message: Message) -> ProcessingResult:
        """Handle an inbound message value."""
        return await self.handle_message(message.text, message.sender, message.session)

    async def handle_message(self, text: str, sender: str, session: str) -> ProcessingResult:
        """Decide whether to answer a message and, if so, deliver the answer.

        Provider failures never reach this level. Anything else that goes
        wrong is logged and turned into a generic apology.
        """
        stats = get_session_stats()
        stats.increment("messages_received")
        if stats.messages_received % STATS_LOG_INTERVAL == 0:
            logger.info(f"SESSION_STATS: {stats.summary_line()}")

        if not self._gate.should_respond(text, sender):
            return ProcessingResult(responded=False, reason="gate")

        typing_started = False
        try:
            context = await self._store.append(session, HistoryEntry.user(text, sender))
            # Providers see what came before this message
            history = context.history[:-1]

            await self._sleep(self._typing.pre_delay_seconds)
            await self._transport.typing(self.assistant_name)
            typing_started = True

            with log_timing(logger, "Response generation"):
                result = await self._orchestrator.respond_detailed(text, sender, history)

            # The session may have ended while the reply was generated
            await self._store.append(session, HistoryEntry.assistant(result.text), create=False)

            await self._sleep(
                self._rng.uniform(
                    self._typing.post_delay_min_seconds,
                    self._typing.post_delay_max_seconds,
                )
            )
            await self._transport.stop_typing()
            typing_started = False

            await self._transport.send(
                OutboundMessage(sender=self.assistant_name, text=result.text, is_assistant=True)
            )
            logger.info(f"{self.assistant_name} -> {sender} [{result.source}]: {result.text}")

            return ProcessingResult(
                responded=True,
                text=result.text,
                source=result.source,
                gate_passed=True,
            )

        except Exception as e:
            logger.exception(f"Response pipeline failed for {sender}: {e}")
            stats.increment("apologies")
            apology = APOLOGY_TEMPLATE.format(sender=sender)
            try:
                if typing_started:
                    await self._transport.stop_typing()
                await self._transport.send(
                    OutboundMessage(sender=self.assistant_name, text=apology, is_assistant=True)
                )
            except Exception as send_error:
                logger.error(f"Failed to deliver apology: {send_error}")

            return ProcessingResult(
                responded=True,
                text=apology,
                source="apology",
                gate_passed=True,
                apologized=True,
                reason=str(e),
            )

    def welcome_message(self, sender: str) -> OutboundMessage:
        """The assistant's greeting for a newly joined participant."""
        return OutboundMessage(
            sender=self.assistant_name,
            text=WELCOME_TEMPLATE.format(sender=sender),
            is_assistant=True,
        )

    async def end_session(self, session: str) -> None:
        """Forget a session's context when its connection closes."""
        if await self._store.remove(session):
            logger.debug(f"Context {session} removed")
