"""Batch planner - split an ordered asset list into bounded transactions."""

from __future__ import annotations

from typing import Sequence

from claimdrop.models.assets import AssetSpec
from claimdrop.models.config import MAX_OPERATIONS_PER_TX


def plan_batches(
    assets: Sequence[AssetSpec],
    max_size: int = MAX_OPERATIONS_PER_TX,
) -> list[tuple[AssetSpec, ...]]:
    """Contiguous batches of at most max_size, in input order.

    Concatenating the result reproduces ``assets`` exactly; an empty input
    yields no batches.
    """
    if not 1 <= max_size <= MAX_OPERATIONS_PER_TX:
        raise ValueError(
            f"batch size must be between 1 and {MAX_OPERATIONS_PER_TX}, got {max_size}"
        )
    return [tuple(assets[i:i + max_size]) for i in range(0, len(assets), max_size)]
