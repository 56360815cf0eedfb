"""Asset and request models."""

from __future__ import annotations

from dataclasses import dataclass

NATIVE_CODE = "XLM"


@dataclass(frozen=True)
class AssetSpec:
    """One asset to hand out, validated once when the catalog is loaded.

    ``issuer`` is None for the native asset.
    """

    code: str
    issuer: str | None
    amount: str  # decimal string, e.g. "10.5"

    @property
    def is_native(self) -> bool:
        return self.issuer is None

    @property
    def key(self) -> tuple[str, str | None]:
        """(code, issuer) pair as it appears in account balances."""
        if self.is_native:
            return (NATIVE_CODE, None)
        return (self.code, self.issuer)

    def label(self) -> str:
        if self.is_native:
            return f"{self.amount} {NATIVE_CODE}"
        return f"{self.amount} {self.code}:{self.issuer[:8]}..."  # type: ignore[index]


@dataclass(frozen=True)
class DistributionRequest:
    """A single inbound address submission from a requester."""

    requester_id: str
    target_address: str
    assets: tuple[AssetSpec, ...]
