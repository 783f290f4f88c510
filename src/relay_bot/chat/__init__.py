"""Real-time chat relay plumbing."""

from .hub import ChatHub, ConnectedUser
from .models import Message, OutboundMessage

__all__ = ["ChatHub", "ConnectedUser", "Message", "OutboundMessage"]
