"""Distributor service - wires all components together and gates on pre-flight."""

from __future__ import annotations

import asyncio
import logging

from stellar_sdk import Keypair
from stellar_sdk.exceptions import Ed25519SecretSeedInvalidError

from claimdrop.api.replies import LoggingReplyChannel
from claimdrop.catalog import CsvAssetCatalog
from claimdrop.distribution.orchestrator import DistributionOrchestrator
from claimdrop.errors import ConfigError, ServiceNotReadyError
from claimdrop.interfaces.catalog import AssetCatalog
from claimdrop.interfaces.ledger import LedgerClient
from claimdrop.interfaces.notifier import ReplyChannel
from claimdrop.models.assets import AssetSpec, DistributionRequest
from claimdrop.models.config import DistributorConfig
from claimdrop.models.outcomes import DistributionReport
from claimdrop.policy.cooldown import CooldownGuard
from claimdrop.policy.preflight import TrustlinePreflightChecker
from claimdrop.stellar.horizon import HorizonLedgerClient
from claimdrop.stellar.submitter import ClaimableBalanceSubmitter
from claimdrop.storage.memory import InMemoryCooldownStore
from claimdrop.storage.sqlite import SQLiteStateStore

log = logging.getLogger(__name__)


class DistributorService:
    """Claimable-balance distribution service for one distributor account.

    start() loads the catalog and runs the trustline pre-flight; no request
    is served until it has succeeded.
    """

    def __init__(
        self,
        cfg: DistributorConfig,
        catalog: AssetCatalog | None = None,
        ledger: LedgerClient | None = None,
        notifier: ReplyChannel | None = None,
        store: SQLiteStateStore | None = None,
    ) -> None:
        if not cfg.distributor_secret:
            raise ConfigError("no distributor secret configured")

        self._cfg = cfg
        self._ready = False
        self._assets: tuple[AssetSpec, ...] = ()

        try:
            keypair = Keypair.from_secret(cfg.distributor_secret)
        except Ed25519SecretSeedInvalidError:
            # The SDK error message echoes the seed
            raise ConfigError(
                "distributor secret is not a valid Stellar secret seed"
            ) from None
        self._public_key = keypair.public_key

        # Core components
        self.catalog = catalog or CsvAssetCatalog(cfg.catalog_path)
        self.ledger = ledger or HorizonLedgerClient(cfg.horizon_url, cfg.request_timeout)
        self.notifier = notifier or LoggingReplyChannel()

        if store is None and cfg.db_path:
            store = SQLiteStateStore(cfg.db_path)
        self.store = store
        cooldown_store = store if store is not None else InMemoryCooldownStore()

        self.preflight = TrustlinePreflightChecker(self.ledger, self._public_key)
        self.submitter = ClaimableBalanceSubmitter(
            ledger=self.ledger,
            keypair=keypair,
            network_passphrase=cfg.network_passphrase,
            base_fee=cfg.base_fee,
            tx_timeout=cfg.tx_timeout,
            max_attempts=cfg.max_attempts,
        )
        self.cooldown = CooldownGuard(cooldown_store, cfg.cooldown_seconds)
        self.orchestrator = DistributionOrchestrator(
            submitter=self.submitter,
            cooldown=self.cooldown,
            notifier=self.notifier,
            batch_size=cfg.batch_size,
            explorer_url=cfg.explorer_url,
            history=store,
        )

    @property
    def public_key(self) -> str:
        return self._public_key

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def assets(self) -> tuple[AssetSpec, ...]:
        return self._assets

    async def start(self) -> None:
        """Open storage, load the catalog and run the pre-flight check.

        Raises CatalogError or MissingTrustlinesError; the service stays
        not-ready in either case.
        """
        log.info("Starting claimdrop distributor")
        log.info("  Network: %s", self._cfg.network)
        log.info("  Horizon: %s", self._cfg.horizon_url)
        log.info("  Distributor: %s", self._public_key)

        if self.store is not None:
            await self.store.initialize()

        self._assets = tuple(self.catalog.list_assets())
        log.info("  Assets: %d", len(self._assets))

        await self.preflight.check(self._assets, self._cfg.primary_asset)
        self._ready = True
        log.info("Distributor ready")

    async def distribute(self, requester_id: str, address: str) -> DistributionReport:
        if not self._ready:
            raise ServiceNotReadyError("pre-flight has not completed")
        request = DistributionRequest(
            requester_id=requester_id,
            target_address=address.strip(),
            assets=self._assets,
        )
        return await self.orchestrator.distribute(request)

    async def close(self) -> None:
        self._ready = False
        await self.ledger.close()
        if self.store is not None:
            await self.store.close()
        log.info("Distributor shut down cleanly")


async def run_distributions(
    service: DistributorService,
    requests: list[tuple[str, str]],
) -> list[DistributionReport]:
    """Start the service, serve (requester_id, address) pairs concurrently, close.

    Every request runs to completion before the service closes. If any of
    them raised, each failure is logged and the first one is re-raised.
    """
    try:
        await service.start()
        results = await asyncio.gather(
            *(service.distribute(rid, address) for rid, address in requests),
            return_exceptions=True,
        )
    finally:
        await service.close()

    failures = [
        (rid, result)
        for (rid, _), result in zip(requests, results)
        if isinstance(result, BaseException)
    ]
    for rid, exc in failures:
        log.error("Distribution for %s raised %s: %s", rid, type(exc).__name__, exc)
    if failures:
        raise failures[0][1]
    return list(results)
