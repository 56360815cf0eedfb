"""BatchSubmitter protocol - submits one batch of claimable balances."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, Sequence

from claimdrop.models.assets import AssetSpec
from claimdrop.models.outcomes import SubmissionOutcome

ProgressCallback = Callable[[str], Awaitable[None]]


class BatchSubmitter(Protocol):
    """Builds, signs and submits a batch, retrying transient failures."""

    async def submit_batch(
        self,
        batch: Sequence[AssetSpec],
        destination: str,
        progress: ProgressCallback | None = None,
    ) -> SubmissionOutcome:
        ...
