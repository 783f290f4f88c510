"""Chat message value types exchanged with the transport."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Message:
    """An inbound chat message."""

    text: str
    sender: str
    session: str
    received_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class OutboundMessage:
    """A message broadcast to every participant."""

    sender: str
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    is_assistant: bool = False
    is_system: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        data: dict[str, Any] = {
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.is_assistant:
            data["is_assistant"] = True
        if self.is_system:
            data["is_system"] = True
        return data
