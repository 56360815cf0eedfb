"""Trustline pre-flight - the distributor must hold every asset it gives away."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from claimdrop.errors import MissingTrustlinesError
from claimdrop.interfaces.ledger import LedgerClient
from claimdrop.models.assets import AssetSpec
from claimdrop.models.records import AccountSnapshot

log = logging.getLogger(__name__)

AssetKey = tuple[str, Optional[str]]


def missing_trustlines(
    balances: Iterable[AssetKey],
    required: Iterable[AssetKey],
) -> set[AssetKey]:
    """Required (code, issuer) pairs absent from balances. Native is exempt."""
    held = set(balances)
    return {
        (code, issuer)
        for code, issuer in required
        if issuer is not None and (code, issuer) not in held
    }


class TrustlinePreflightChecker:
    """Fail-closed startup check against the distributor's balances.

    A single unmet trustline blocks the whole service, not just the
    affected asset.
    """

    def __init__(self, ledger: LedgerClient, account_id: str) -> None:
        self._ledger = ledger
        self._account_id = account_id

    async def check(
        self,
        assets: Iterable[AssetSpec],
        primary_asset: tuple[str, str] | None = None,
    ) -> AccountSnapshot:
        """Raise MissingTrustlinesError listing every missing pair."""
        required: set[AssetKey] = {spec.key for spec in assets}
        if primary_asset is not None:
            required.add(primary_asset)

        snapshot = await self._ledger.load_account(self._account_id)
        missing = missing_trustlines(snapshot.trustlines(), required)
        if missing:
            for code, issuer in sorted(missing, key=lambda p: (p[0], p[1] or "")):
                log.error("Missing trustline: %s:%s", code, issuer)
            raise MissingTrustlinesError(missing)

        log.info(
            "Pre-flight passed: %d required assets held by %s",
            len(required), self._account_id[:8],
        )
        return snapshot
