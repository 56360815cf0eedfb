"""Store protocols - cooldown state and distribution history."""

from __future__ import annotations

from typing import Protocol

from claimdrop.models.outcomes import DistributionReport
from claimdrop.models.records import CooldownEntry, DistributionRecord


class CooldownStore(Protocol):
    """Per-requester cooldown entries, keyed by requester id."""

    async def get_cooldown(self, requester_id: str) -> CooldownEntry | None:
        ...

    async def put_cooldown(self, entry: CooldownEntry) -> None:
        ...


class DistributionHistory(Protocol):
    """Append-only log of finished distributions."""

    async def record_distribution(self, report: DistributionReport) -> None:
        ...

    async def get_recent_distributions(self, limit: int = 20) -> list[DistributionRecord]:
        ...
