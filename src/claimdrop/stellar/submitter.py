"""Claimable balance submitter - builds, signs and submits one batch per call."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from stellar_sdk import Account, Asset, Claimant, Keypair, TransactionBuilder

from claimdrop.interfaces.ledger import LedgerClient
from claimdrop.interfaces.submitter import ProgressCallback
from claimdrop.models.assets import AssetSpec
from claimdrop.models.outcomes import (
    FailureKind,
    PartialSuccess,
    PermanentFailure,
    SubmissionOutcome,
    Success,
)
from claimdrop.stellar.classify import classify_failure
from claimdrop.stellar.keys import scrub_secret

log = logging.getLogger(__name__)

# Fixed backoff per transient kind (seconds); no exponential growth
BACKOFF_SECONDS = {
    FailureKind.NETWORK: 5.0,
    FailureKind.SEQUENCE: 1.0,
    FailureKind.EXPIRED: 1.0,
    FailureKind.FEE: 5.0,
}

RETRY_MESSAGES = {
    FailureKind.NETWORK: "Ledger gateway timed out. Retrying...",
    FailureKind.SEQUENCE: "Bad sequence number. Retrying...",
    FailureKind.EXPIRED: "Transaction window expired. Retrying...",
    FailureKind.FEE: "Network fee is too high right now. Retrying after 5 seconds...",
}

REASON_NO_ELIGIBLE = "no eligible operations remain: recipient missing required authorization"
REASON_UNDERFUNDED = "distributor underfunded"
REASON_EXHAUSTED = "retry budget exhausted"


def to_stellar_asset(spec: AssetSpec) -> Asset:
    if spec.is_native:
        return Asset.native()
    return Asset(spec.code, spec.issuer)


def prune_operations(
    batch: Sequence[AssetSpec], rejected: frozenset[int] | set[int],
) -> list[AssetSpec]:
    """Drop rejected operation indices in one pass, keeping survivor order."""
    return [spec for i, spec in enumerate(batch) if i not in rejected]


class ClaimableBalanceSubmitter:
    """Submits create_claimable_balance batches from the distributor account.

    One instance per distributor account. Each attempt loads a fresh account
    snapshot, builds a transaction with a new validity window, signs and
    submits it while holding the account lock. Backoff waits happen outside
    the lock so other requests can submit meanwhile.

    The keypair never leaves this object; every failure reason it returns
    is scrubbed of the secret seed.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        keypair: Keypair,
        network_passphrase: str,
        base_fee: int = 100,
        tx_timeout: int = 180,
        max_attempts: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._ledger = ledger
        self._keypair = keypair
        self._public_key = keypair.public_key
        self._secret = keypair.secret if keypair.can_sign() else ""
        self._network_passphrase = network_passphrase
        self._base_fee = base_fee
        self._tx_timeout = tx_timeout
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def public_key(self) -> str:
        return self._public_key

    async def submit_batch(
        self,
        batch: Sequence[AssetSpec],
        destination: str,
        progress: ProgressCallback | None = None,
    ) -> SubmissionOutcome:
        """Run the retry state machine for one batch until a terminal outcome."""
        remaining = list(batch)
        excluded = 0

        for attempt in range(1, self._max_attempts + 1):
            log.info(
                "Submitting %d claimable balances to %s (attempt %d/%d)",
                len(remaining), destination[:8], attempt, self._max_attempts,
            )
            try:
                tx_hash = await self._attempt(remaining, destination)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                failure = classify_failure(exc)
            else:
                log.info("Batch committed (tx=%s, excluded=%d)", tx_hash[:16], excluded)
                if excluded:
                    return PartialSuccess(tx_hash=tx_hash, excluded_count=excluded)
                return Success(tx_hash=tx_hash)

            detail = self._scrub(failure.detail)
            log.warning(
                "Attempt %d failed: %s (%s)", attempt, failure.kind.value, detail,
            )

            if failure.kind in BACKOFF_SECONDS:
                if attempt < self._max_attempts:
                    await self._report(progress, RETRY_MESSAGES[failure.kind])
                    await self._sleep(BACKOFF_SECONDS[failure.kind])
                continue

            if failure.kind is FailureKind.PARTIAL_REJECTION:
                survivors = prune_operations(remaining, failure.rejected_indices)
                excluded += len(remaining) - len(survivors)
                remaining = survivors
                if not remaining:
                    return PermanentFailure(FailureKind.PARTIAL_REJECTION, REASON_NO_ELIGIBLE)
                if attempt < self._max_attempts:
                    await self._report(
                        progress,
                        "Your wallet has no trustline for some assets. "
                        "Retrying the remaining operations...",
                    )
                continue

            if failure.kind is FailureKind.RESOURCE_EXHAUSTION:
                return PermanentFailure(FailureKind.RESOURCE_EXHAUSTION, REASON_UNDERFUNDED)

            return PermanentFailure(FailureKind.UNCLASSIFIED, detail)

        log.error("Retry budget exhausted after %d attempts", self._max_attempts)
        return PermanentFailure(FailureKind.RETRY_EXHAUSTED, REASON_EXHAUSTED)

    async def _attempt(self, batch: Sequence[AssetSpec], destination: str) -> str:
        """Load, build, sign and submit under the account lock."""
        async with self._lock:
            snapshot = await self._ledger.load_account(self._public_key)
            builder = TransactionBuilder(
                source_account=Account(self._public_key, snapshot.sequence),
                network_passphrase=self._network_passphrase,
                base_fee=self._base_fee,
            )
            claimants = [Claimant(destination=destination)]
            for spec in batch:
                builder.append_create_claimable_balance_op(
                    asset=to_stellar_asset(spec),
                    amount=spec.amount,
                    claimants=claimants,
                )
            envelope = builder.set_timeout(self._tx_timeout).build()
            envelope.sign(self._keypair)
            return await self._ledger.submit_transaction(envelope)

    def _scrub(self, text: str) -> str:
        return scrub_secret(text, self._secret)

    async def _report(self, progress: ProgressCallback | None, message: str) -> None:
        if progress is None:
            return
        try:
            await progress(message)
        except Exception as exc:
            log.warning("Progress callback failed: %s", exc)
