"""Submission outcomes and failure classification types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from claimdrop.models.assets import AssetSpec


class FailureKind(str, Enum):
    """Closed set of ways a batch submission attempt can fail."""

    NETWORK = "network"  # gateway timeout / no structured response
    SEQUENCE = "sequence"  # tx_bad_seq
    EXPIRED = "expired"  # tx_too_late
    FEE = "fee"  # tx_insufficient_fee
    PARTIAL_REJECTION = "partial_rejection"  # op_no_trust on some operations
    RESOURCE_EXHAUSTION = "resource_exhaustion"  # distributor underfunded
    UNCLASSIFIED = "unclassified"
    RETRY_EXHAUSTED = "retry_exhausted"


@dataclass(frozen=True)
class LedgerFailure:
    """A submission error decoded once into a FailureKind."""

    kind: FailureKind
    detail: str
    rejected_indices: frozenset[int] = frozenset()


@dataclass(frozen=True)
class Success:
    tx_hash: str


@dataclass(frozen=True)
class PartialSuccess:
    """Committed after pruning operations the recipient could not accept."""

    tx_hash: str
    excluded_count: int


@dataclass(frozen=True)
class PermanentFailure:
    kind: FailureKind
    reason: str


SubmissionOutcome = Union[Success, PartialSuccess, PermanentFailure]


@dataclass
class BatchOutcome:
    """Outcome of one planned batch within a distribution."""

    index: int
    assets: tuple[AssetSpec, ...]
    outcome: SubmissionOutcome

    @property
    def tx_hash(self) -> str | None:
        if isinstance(self.outcome, (Success, PartialSuccess)):
            return self.outcome.tx_hash
        return None


@dataclass
class DistributionReport:
    """Aggregated result of one distribution request."""

    requester_id: str
    address: str
    status: str  # "rejected" | "completed" | "partial" | "failed"
    reason: str | None = None
    outcomes: list[BatchOutcome] = field(default_factory=list)

    @property
    def hashes(self) -> list[str]:
        return [o.tx_hash for o in self.outcomes if o.tx_hash]

    @property
    def failures(self) -> list[BatchOutcome]:
        return [o for o in self.outcomes if isinstance(o.outcome, PermanentFailure)]
