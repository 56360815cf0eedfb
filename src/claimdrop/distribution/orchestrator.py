"""Distribution orchestrator - drives one request from address to tx hashes."""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import time
from typing import Callable

from claimdrop.distribution.batching import plan_batches
from claimdrop.interfaces.notifier import ReplyChannel
from claimdrop.interfaces.store import DistributionHistory
from claimdrop.interfaces.submitter import BatchSubmitter
from claimdrop.models.assets import DistributionRequest
from claimdrop.models.config import MAX_OPERATIONS_PER_TX
from claimdrop.models.outcomes import (
    BatchOutcome,
    DistributionReport,
    PartialSuccess,
    PermanentFailure,
)
from claimdrop.policy.cooldown import CooldownGuard
from claimdrop.stellar.keys import is_valid_address

log = logging.getLogger(__name__)

DEFAULT_EXPLORER_URL = "https://stellar.expert/explorer/public"


class DistributionOrchestrator:
    """Runs one DistributionRequest end to end.

    Steps:
    1. Validate the target address
    2. Consult the cooldown guard
    3. Plan batches and submit them strictly in order
    4. Record the cooldown once any batch produced a hash
    5. Reply with a summary and append to the history log

    Requests from the same requester are serialized so the cooldown check
    and its update never interleave. Different requesters run concurrently
    and only queue on the submitter's account lock.
    """

    def __init__(
        self,
        submitter: BatchSubmitter,
        cooldown: CooldownGuard,
        notifier: ReplyChannel,
        batch_size: int = MAX_OPERATIONS_PER_TX,
        explorer_url: str = DEFAULT_EXPLORER_URL,
        history: DistributionHistory | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._submitter = submitter
        self._cooldown = cooldown
        self._notifier = notifier
        self._batch_size = batch_size
        self._explorer_url = explorer_url.rstrip("/")
        self._history = history
        self._clock = clock
        self._requester_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def distribute(self, request: DistributionRequest) -> DistributionReport:
        rid = request.requester_id
        lock = self._requester_locks.setdefault(rid, asyncio.Lock())
        self._lock_users[rid] = self._lock_users.get(rid, 0) + 1
        try:
            async with lock:
                report = await self._run(request)
        finally:
            # Forget the lock once nobody holds or waits on it
            self._lock_users[rid] -= 1
            if not self._lock_users[rid]:
                del self._lock_users[rid]
                del self._requester_locks[rid]

        log.info(
            "Distribution for %s to %s: %s (%d tx)",
            request.requester_id, request.target_address[:8],
            report.status, len(report.hashes),
        )
        if self._history is not None and report.status != "rejected":
            try:
                await self._history.record_distribution(report)
            except Exception as exc:
                log.error("Failed to record distribution history: %s", exc)
        return report

    async def _run(self, request: DistributionRequest) -> DistributionReport:
        rid = request.requester_id
        address = request.target_address

        if not is_valid_address(address):
            await self._reply(
                rid,
                "That doesn't look like a valid Stellar address. "
                "Please send a valid address starting with 'G'.",
            )
            return DistributionReport(rid, address, "rejected", reason="invalid_address")

        if not request.assets:
            await self._reply(rid, "No assets are configured to send right now.")
            return DistributionReport(rid, address, "rejected", reason="no_assets")

        now = self._clock()
        if not await self._cooldown.admit(rid, address, now):
            wait = await self._cooldown.remaining(rid, address, now)
            await self._reply(
                rid,
                "This address already received its claimable balances. "
                f"Try again in {math.ceil(wait)} seconds.",
            )
            return DistributionReport(rid, address, "rejected", reason="cooldown")

        await self._reply(rid, "Creating your claimable balances. Please wait...")

        progress = functools.partial(self._reply, rid)
        outcomes: list[BatchOutcome] = []
        for index, batch in enumerate(plan_batches(request.assets, self._batch_size)):
            outcome = await self._submitter.submit_batch(batch, address, progress=progress)
            outcomes.append(BatchOutcome(index=index, assets=batch, outcome=outcome))
            if isinstance(outcome, PermanentFailure):
                log.warning(
                    "Batch %d for %s failed: %s", index, address[:8], outcome.reason,
                )

        report = DistributionReport(
            requester_id=rid,
            address=address,
            status=_overall_status(outcomes),
            outcomes=outcomes,
        )
        if report.hashes:
            await self._cooldown.record_success(rid, address, self._clock())
        if report.failures:
            report.reason = report.failures[0].outcome.reason  # type: ignore[union-attr]

        await self._reply(rid, self.format_summary(report))
        return report

    def format_summary(self, report: DistributionReport) -> str:
        """Human-readable result for the requester."""
        lines: list[str] = []
        if report.hashes:
            lines.append("Claimable balances sent!")
            lines.append("")
            lines.append("Transactions:")
            lines.extend(f"{self._explorer_url}/tx/{h}" for h in report.hashes)

        skipped = sum(
            o.outcome.excluded_count
            for o in report.outcomes
            if isinstance(o.outcome, PartialSuccess)
        )
        if skipped:
            lines.append("")
            lines.append(
                f"Skipped {skipped} asset(s) your wallet has no trustline for."
            )

        failures = report.failures
        if failures:
            if lines:
                lines.append("")
            else:
                lines.append("Failed to send claimable balances.")
            total = len(report.outcomes)
            for o in failures:
                lines.append(f"Batch {o.index + 1}/{total} failed: {o.outcome.reason}")  # type: ignore[union-attr]

        return "\n".join(lines)

    async def _reply(self, requester_id: str, text: str) -> None:
        """Best-effort reply; delivery failures never affect the distribution."""
        try:
            await self._notifier.notify(requester_id, text)
        except Exception as exc:
            log.warning("Reply to %s failed: %s", requester_id, exc)


def _overall_status(outcomes: list[BatchOutcome]) -> str:
    succeeded = sum(1 for o in outcomes if o.tx_hash)
    if succeeded == len(outcomes):
        return "completed"
    if succeeded:
        return "partial"
    return "failed"
