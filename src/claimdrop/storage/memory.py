"""In-memory cooldown store. State is lost on restart."""

from __future__ import annotations

from claimdrop.models.records import CooldownEntry


class InMemoryCooldownStore:
    """Process-lifetime CooldownStore keyed by requester id."""

    def __init__(self) -> None:
        self._entries: dict[str, CooldownEntry] = {}

    async def get_cooldown(self, requester_id: str) -> CooldownEntry | None:
        return self._entries.get(requester_id)

    async def put_cooldown(self, entry: CooldownEntry) -> None:
        self._entries[entry.requester_id] = entry

    def __len__(self) -> int:
        return len(self._entries)
