"""AssetCatalog protocol - supplies the validated asset list to distribute."""

from __future__ import annotations

from typing import Protocol

from claimdrop.models.assets import AssetSpec


class AssetCatalog(Protocol):
    """Supplies the ordered, already-validated list of assets to hand out."""

    def list_assets(self) -> list[AssetSpec]:
        ...
