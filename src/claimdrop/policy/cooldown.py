"""Cooldown guard - per-requester rate limit on repeat distributions."""

from __future__ import annotations

import logging

from claimdrop.interfaces.store import CooldownStore
from claimdrop.models.records import CooldownEntry

log = logging.getLogger(__name__)


class CooldownGuard:
    """Rejects a requester re-submitting the same address within the window.

    A different address from the same requester is always admitted. State
    changes only through record_success(), after a distribution produced at
    least one transaction hash.
    """

    def __init__(self, store: CooldownStore, cooldown_seconds: float = 60.0) -> None:
        self._store = store
        self._cooldown = cooldown_seconds

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    async def admit(self, requester_id: str, address: str, now: float) -> bool:
        entry = await self._store.get_cooldown(requester_id)
        if entry is None or entry.last_address != address:
            return True
        if now - entry.last_success_at < self._cooldown:
            log.info(
                "Cooldown active for %s on %s (%.0fs left)",
                requester_id, address[:8],
                self._cooldown - (now - entry.last_success_at),
            )
            return False
        return True

    async def remaining(self, requester_id: str, address: str, now: float) -> float:
        """Seconds left before the same address is admitted again (0 if none)."""
        entry = await self._store.get_cooldown(requester_id)
        if entry is None or entry.last_address != address:
            return 0.0
        return max(0.0, self._cooldown - (now - entry.last_success_at))

    async def record_success(self, requester_id: str, address: str, now: float) -> None:
        await self._store.put_cooldown(
            CooldownEntry(
                requester_id=requester_id,
                last_address=address,
                last_success_at=now,
            )
        )
