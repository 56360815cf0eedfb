"""Reply channels - where requester-facing messages end up."""

from __future__ import annotations

import logging

import click

log = logging.getLogger(__name__)


class LoggingReplyChannel:
    """ReplyChannel that writes every reply to the log."""

    async def notify(self, requester_id: str, text: str) -> None:
        log.info("[reply -> %s] %s", requester_id, text)


class ConsoleReplyChannel:
    """ReplyChannel for the CLI: echoes replies prefixed with the requester."""

    def __init__(self, show_requester: bool = True) -> None:
        self._show_requester = show_requester

    async def notify(self, requester_id: str, text: str) -> None:
        if self._show_requester:
            click.echo(f"[{requester_id}] {text}")
        else:
            click.echo(text)
