"""LedgerClient protocol - account loads and transaction submission."""

from __future__ import annotations

from typing import Protocol

from stellar_sdk import TransactionEnvelope

from claimdrop.models.records import AccountSnapshot


class LedgerClient(Protocol):
    """Read distributor state and submit signed transactions."""

    async def load_account(self, account_id: str) -> AccountSnapshot:
        """Fetch current sequence number and balances."""
        ...

    async def submit_transaction(self, envelope: TransactionEnvelope) -> str:
        """Submit a signed envelope and return its hash.

        Raises LedgerTransportError when no structured response arrives and
        LedgerSubmitError when the ledger returns result codes.
        """
        ...

    async def close(self) -> None:
        ...
