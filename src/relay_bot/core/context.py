"""Per-session conversation history with bounded size and idle eviction."""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from relay_bot.config import ContextConfig
from relay_bot.core.logging import get_session_stats

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class HistoryEntry:
    """One message in a session's history."""

    role: Role
    text: str
    sender: str | None = None  # Only set for user entries
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def user(cls, text: str, sender: str, timestamp: datetime | None = None) -> "HistoryEntry":
        return cls(Role.USER, text, sender, timestamp or datetime.now())

    @classmethod
    def assistant(cls, text: str, timestamp: datetime | None = None) -> "HistoryEntry":
        return cls(Role.ASSISTANT, text, None, timestamp or datetime.now())


@dataclass(frozen=True)
class ConversationContext:
    """Read-only snapshot of a session's context."""

    history: tuple[HistoryEntry, ...] = ()
    last_activity: datetime = field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.history)


@dataclass
class _SessionState:
    history: deque[HistoryEntry]
    last_activity: datetime

    def snapshot(self) -> ConversationContext:
        return ConversationContext(history=tuple(self.history), last_activity=self.last_activity)


class ConversationContextStore:
    """Process-wide map of session handle to bounded conversation history.

    All mutation goes through ``append``, ``remove`` and ``sweep``. Readers get
    immutable snapshots, so nothing outside the store holds a live reference
    that a concurrent sweep could invalidate.
    """

    def __init__(self, config: ContextConfig | None = None):
        self._config = config or ContextConfig()
        self._sessions: dict[str, _SessionState] = {}
        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task | None = None

    @property
    def max_history(self) -> int:
        return self._config.max_history

    def _new_state(self, now: datetime) -> _SessionState:
        return _SessionState(history=deque(maxlen=self._config.max_history), last_activity=now)

    async def get(self, session: str) -> ConversationContext:
        """Get a session's context, creating an empty one if absent."""
        async with self._lock:
            state = self._sessions.get(session)
            if state is None:
                state = self._new_state(datetime.now())
                self._sessions[session] = state
            return state.snapshot()

    async def append(
        self,
        session: str,
        entry: HistoryEntry,
        now: datetime | None = None,
        create: bool = True,
    ) -> ConversationContext | None:
        """Append an entry, dropping the oldest beyond the cap.

        Args:
            session: Session handle
            entry: The entry to append
            now: Activity time to record (for testing)
            create: Start a new context if the session has none. When False,
                an entry for a removed session is discarded.

        Returns:
            Snapshot of the context after the append, or None if discarded
        """
        async with self._lock:
            if now is None:
                now = datetime.now()
            state = self._sessions.get(session)
            if state is None:
                if not create:
                    logger.debug(f"Context {session} is gone, dropping {entry.role.value} entry")
                    return None
                state = self._new_state(now)
                self._sessions[session] = state
            state.history.append(entry)
            state.last_activity = now
            logger.debug(f"Context {session}: {len(state.history)} entries")
            return state.snapshot()

    async def remove(self, session: str) -> bool:
        """Drop a session's context. Returns True if it existed."""
        async with self._lock:
            return self._sessions.pop(session, None) is not None

    async def sweep(self, now: datetime | None = None) -> list[str]:
        """Remove sessions idle longer than the eviction threshold.

        Args:
            now: Reference time (for testing)

        Returns:
            The removed session handles
        """
        if now is None:
            now = datetime.now()
        cutoff = now - timedelta(seconds=self._config.max_idle_seconds)

        async with self._lock:
            stale = [s for s, state in self._sessions.items() if state.last_activity < cutoff]
            for session in stale:
                del self._sessions[session]
            remaining = len(self._sessions)

        if stale:
            get_session_stats().increment("contexts_swept", len(stale))
        logger.info(f"CONTEXT_SWEEP: removed={len(stale)} active={remaining}")
        return stale

    async def run_sweeper(self) -> None:
        """Sweep on a fixed interval until cancelled."""
        interval = self._config.sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            await self.sweep()

    def start(self) -> None:
        """Start the background sweeper task."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self.run_sweeper())

    async def stop(self) -> None:
        """Cancel the background sweeper task."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return session in self._sessions
