"""ReplyChannel protocol - best-effort messages back to a requester."""

from __future__ import annotations

from typing import Protocol


class ReplyChannel(Protocol):
    """Delivers text to a requester. Delivery is never confirmed."""

    async def notify(self, requester_id: str, text: str) -> None:
        ...
