"""Protocol interfaces for all claimdrop components."""

from claimdrop.interfaces.catalog import AssetCatalog
from claimdrop.interfaces.ledger import LedgerClient
from claimdrop.interfaces.notifier import ReplyChannel
from claimdrop.interfaces.store import CooldownStore, DistributionHistory
from claimdrop.interfaces.submitter import BatchSubmitter, ProgressCallback

__all__ = [
    "AssetCatalog",
    "LedgerClient",
    "ReplyChannel",
    "CooldownStore", "DistributionHistory",
    "BatchSubmitter", "ProgressCallback",
]
