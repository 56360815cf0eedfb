"""Data models for claimdrop."""

from claimdrop.models.assets import NATIVE_CODE, AssetSpec, DistributionRequest
from claimdrop.models.config import MAX_OPERATIONS_PER_TX, DistributorConfig
from claimdrop.models.outcomes import (
    BatchOutcome,
    DistributionReport,
    FailureKind,
    LedgerFailure,
    PartialSuccess,
    PermanentFailure,
    SubmissionOutcome,
    Success,
)
from claimdrop.models.records import (
    AccountSnapshot,
    Balance,
    CooldownEntry,
    DistributionRecord,
)

__all__ = [
    "NATIVE_CODE", "AssetSpec", "DistributionRequest",
    "MAX_OPERATIONS_PER_TX", "DistributorConfig",
    "BatchOutcome", "DistributionReport", "FailureKind", "LedgerFailure",
    "PartialSuccess", "PermanentFailure", "SubmissionOutcome", "Success",
    "AccountSnapshot", "Balance", "CooldownEntry", "DistributionRecord",
]
