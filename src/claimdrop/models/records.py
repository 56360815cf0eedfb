"""Ledger snapshots and persisted state records."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Balance:
    """A single balance line on a Stellar account. Native has issuer None."""

    code: str
    issuer: str | None
    amount: str = "0"


@dataclass(frozen=True)
class AccountSnapshot:
    """Distributor account state at one point in time.

    The sequence number changes with every committed transaction, so a
    snapshot is never reused across submission attempts.
    """

    account_id: str
    sequence: int
    balances: tuple[Balance, ...] = ()

    def trustlines(self) -> set[tuple[str, str | None]]:
        return {(b.code, b.issuer) for b in self.balances}


@dataclass
class CooldownEntry:
    """Last successful distribution for a requester."""

    requester_id: str
    last_address: str
    last_success_at: float  # unix seconds


@dataclass
class DistributionRecord:
    """A finished distribution as persisted in the history table."""

    requester_id: str
    address: str
    status: str
    reason: str | None = None
    tx_hashes: list[str] = field(default_factory=list)
    created_at: str = ""
