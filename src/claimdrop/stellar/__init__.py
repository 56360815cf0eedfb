"""Stellar integration components."""

from claimdrop.stellar.horizon import HorizonLedgerClient
from claimdrop.stellar.submitter import ClaimableBalanceSubmitter

__all__ = ["HorizonLedgerClient", "ClaimableBalanceSubmitter"]
