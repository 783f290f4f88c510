"""relay-bot: real-time chat relay with an automated AI participant."""

__version__ = "0.1.0"
