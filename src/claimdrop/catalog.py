"""Asset catalog - loads and validates the list of assets to distribute."""

from __future__ import annotations

import csv
import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path

from claimdrop.errors import CatalogError
from claimdrop.models.assets import NATIVE_CODE, AssetSpec
from claimdrop.stellar.keys import is_valid_address

log = logging.getLogger(__name__)

_CODE_RE = re.compile(r"^[A-Za-z0-9]{1,12}$")
_NATIVE_ISSUERS = {"", "native"}
# Stellar amounts carry at most 7 fractional digits
_MAX_DECIMALS = 7


def parse_asset(code: str, issuer: str | None, amount: str) -> AssetSpec:
    """Validate raw values and build an AssetSpec. Raises ValueError."""
    code = (code or "").strip()
    issuer = (issuer or "").strip()
    amount = (amount or "").strip()

    if not _CODE_RE.match(code):
        raise ValueError(f"invalid asset code {code!r}")

    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise ValueError(f"invalid amount {amount!r}") from None
    if not value.is_finite() or value <= 0:
        raise ValueError(f"amount must be positive, got {amount!r}")
    if -value.as_tuple().exponent > _MAX_DECIMALS:  # type: ignore[operator]
        raise ValueError(f"amount {amount!r} has more than {_MAX_DECIMALS} decimals")

    # XLM is always the native asset; any issuer given with it is ignored
    if code.upper() == NATIVE_CODE:
        if issuer.lower() not in _NATIVE_ISSUERS:
            log.warning("Ignoring issuer %s on native asset %s", issuer[:8], code)
        return AssetSpec(code=NATIVE_CODE, issuer=None, amount=amount)

    if issuer.lower() in _NATIVE_ISSUERS:
        raise ValueError(f"asset {code} needs an issuer")

    if not is_valid_address(issuer):
        raise ValueError(f"invalid issuer {issuer!r} for {code}")
    return AssetSpec(code=code, issuer=issuer, amount=amount)


class CsvAssetCatalog:
    """Implements AssetCatalog from a CSV file with code, issuer, amount columns.

    Rows with an empty code or amount are skipped. Any other invalid row
    fails the whole load so a bad catalog never reaches the submitter.
    Assets are read once and cached.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._assets: list[AssetSpec] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def list_assets(self) -> list[AssetSpec]:
        if self._assets is None:
            self._assets = self._load()
        return list(self._assets)

    def _load(self) -> list[AssetSpec]:
        if not self._path.exists():
            raise CatalogError(f"asset catalog not found: {self._path}")

        assets: list[AssetSpec] = []
        with open(self._path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            fields = {name.strip().lower() for name in reader.fieldnames or []}
            if not {"code", "amount"} <= fields:
                raise CatalogError(
                    f"{self._path}: header must include code, issuer, amount"
                )
            for lineno, raw in enumerate(reader, start=2):
                row = {(k or "").strip().lower(): (v or "") for k, v in raw.items()}
                if not row.get("code", "").strip() or not row.get("amount", "").strip():
                    continue
                try:
                    assets.append(
                        parse_asset(row["code"], row.get("issuer"), row["amount"])
                    )
                except ValueError as exc:
                    raise CatalogError(f"{self._path}:{lineno}: {exc}") from exc

        log.info("Loaded %d assets from %s", len(assets), self._path)
        return assets


class StaticAssetCatalog:
    """AssetCatalog over an in-memory list, already validated."""

    def __init__(self, assets: list[AssetSpec]) -> None:
        self._assets = list(assets)

    def list_assets(self) -> list[AssetSpec]:
        return list(self._assets)
