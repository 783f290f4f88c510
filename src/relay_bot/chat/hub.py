"""Connected-participant registry and broadcast fan-out."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from relay_bot.chat.models import OutboundMessage

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can receive JSON frames (a FastAPI WebSocket in practice)."""

    async def send_json(self, data: Any) -> None: ...


@dataclass
class ConnectedUser:
    username: str
    joined_at: datetime = field(default_factory=datetime.now)


class ChatHub:
    """Tracks who is online and relays events to every connection.

    Implements the coordinator's transport: assistant typing indicators and
    replies are broadcast to all participants.
    """

    def __init__(self):
        self._connections: dict[str, Connection] = {}
        self._users: dict[str, ConnectedUser] = {}
        self._lock = asyncio.Lock()

    @property
    def online_count(self) -> int:
        return len(self._users)

    def user(self, session: str) -> ConnectedUser | None:
        return self._users.get(session)

    async def connect(self, session: str, connection: Connection) -> None:
        async with self._lock:
            self._connections[session] = connection
        logger.info(f"Connection opened: {session}")

    async def join(self, session: str, username: str) -> int:
        """Register a participant. Returns the new online count."""
        async with self._lock:
            self._users[session] = ConnectedUser(username=username)
            count = len(self._users)
        logger.info(f"{username} joined the chat ({count} online)")
        return count

    async def _drop_connection(self, session: str) -> None:
        """Stop sending to a broken connection.

        The participant stays registered until the socket handler calls
        ``disconnect``, which announces the departure.
        """
        async with self._lock:
            self._connections.pop(session, None)

    async def disconnect(self, session: str) -> ConnectedUser | None:
        """Drop a connection. Returns the participant if they had joined."""
        async with self._lock:
            self._connections.pop(session, None)
            user = self._users.pop(session, None)
        if user:
            logger.info(f"{user.username} disconnected")
        return user

    async def send_to(self, session: str, event: str, data: Any = None) -> None:
        connection = self._connections.get(session)
        if connection is None:
            return
        await connection.send_json({"event": event, "data": data})

    async def emit(self, event: str, data: Any = None, exclude: str | None = None) -> None:
        """Send an event to every connection except ``exclude``."""
        async with self._lock:
            targets = [(s, c) for s, c in self._connections.items() if s != exclude]

        frame = {"event": event, "data": data}
        for session, connection in targets:
            try:
                await connection.send_json(frame)
            except Exception as e:
                logger.warning(f"Dropping connection {session}: {e}")
                await self._drop_connection(session)

    async def typing(self, name: str) -> None:
        await self.emit("typing", name)

    async def stop_typing(self) -> None:
        await self.emit("stop typing")

    async def send(self, message: OutboundMessage) -> None:
        await self.emit("chat message", message.to_dict())
