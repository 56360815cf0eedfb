"""API components - reply channels for requester-facing messages."""

from claimdrop.api.replies import ConsoleReplyChannel, LoggingReplyChannel

__all__ = ["ConsoleReplyChannel", "LoggingReplyChannel"]
