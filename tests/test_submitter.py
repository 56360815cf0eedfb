"""Claimable balance submitter: retry state machine against a mock ledger."""

from __future__ import annotations

import asyncio
import logging

from claimdrop.models.outcomes import FailureKind, PartialSuccess, PermanentFailure, Success
from claimdrop.stellar.submitter import (
    REASON_EXHAUSTED,
    REASON_NO_ELIGIBLE,
    REASON_UNDERFUNDED,
    ClaimableBalanceSubmitter,
    prune_operations,
)
from tests.factories import (
    RECIPIENT_A,
    RECIPIENT_B,
    TEST_KEYPAIR,
    TEST_SECRET,
    TESTNET_PASSPHRASE,
    make_assets,
    native_asset,
    network_error,
    submit_error,
)
from tests.mocks import FakeSleep, MockLedger


# ── Happy path ─────────────────────────────────────────────────────


async def test_success_first_attempt(submitter, mock_ledger, fake_sleep):
    outcome = await submitter.submit_batch(make_assets(3), RECIPIENT_A)

    assert outcome == Success(tx_hash="hash0001")
    assert len(mock_ledger.submitted) == 1
    assert mock_ledger.operation_codes() == ["T0", "T1", "T2"]
    assert fake_sleep.delays == []


async def test_envelope_contents(submitter, mock_ledger):
    await submitter.submit_batch([native_asset(), *make_assets(1)], RECIPIENT_A)

    envelope = mock_ledger.submitted[0]
    tx = envelope.transaction
    assert tx.source.account_id == TEST_KEYPAIR.public_key
    assert tx.sequence == 1001
    assert len(envelope.signatures) == 1
    assert tx.operations[0].asset.is_native()
    for op in tx.operations:
        assert [c.destination for c in op.claimants] == [RECIPIENT_A]


# ── Partial rejection ──────────────────────────────────────────────


async def test_prune_no_trust_operation(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(submit_error("tx_failed", ["op_success", "op_no_trust", "op_success"]))

    outcome = await submitter.submit_batch(make_assets(3), RECIPIENT_A)

    assert outcome == PartialSuccess(tx_hash="hash0002", excluded_count=1)
    assert mock_ledger.operation_codes(0) == ["T0", "T1", "T2"]
    assert mock_ledger.operation_codes(1) == ["T0", "T2"]
    assert fake_sleep.delays == []


async def test_prune_indices_are_relative_to_current_batch(submitter, mock_ledger):
    mock_ledger.queue(
        submit_error("tx_failed", ["op_no_trust", "op_success", "op_success"]),
        submit_error("tx_failed", ["op_success", "op_no_trust"]),
    )

    outcome = await submitter.submit_batch(make_assets(3), RECIPIENT_A)

    assert outcome == PartialSuccess(tx_hash="hash0003", excluded_count=2)
    assert mock_ledger.operation_codes(1) == ["T1", "T2"]
    assert mock_ledger.operation_codes(2) == ["T2"]


async def test_all_operations_pruned(submitter, mock_ledger):
    mock_ledger.queue(submit_error("tx_failed", ["op_no_trust", "op_no_trust"]))

    outcome = await submitter.submit_batch(make_assets(2), RECIPIENT_A)

    assert outcome == PermanentFailure(FailureKind.PARTIAL_REJECTION, REASON_NO_ELIGIBLE)
    assert len(mock_ledger.submitted) == 1


def test_prune_operations_keeps_order():
    batch = make_assets(5)
    assert [s.code for s in prune_operations(batch, {0, 3})] == ["T1", "T2", "T4"]


# ── Permanent failures ─────────────────────────────────────────────


async def test_resource_exhaustion_stops_immediately(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(submit_error("tx_failed", ["op_success", "op_underfunded"]))

    outcome = await submitter.submit_batch(make_assets(2), RECIPIENT_A)

    assert outcome == PermanentFailure(FailureKind.RESOURCE_EXHAUSTION, REASON_UNDERFUNDED)
    assert len(mock_ledger.submitted) == 1
    assert mock_ledger.load_calls == 1
    assert fake_sleep.delays == []


async def test_unclassified_is_permanent(submitter, mock_ledger):
    mock_ledger.queue(submit_error("tx_bad_auth"))

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert isinstance(outcome, PermanentFailure)
    assert outcome.kind is FailureKind.UNCLASSIFIED
    assert "tx_bad_auth" in outcome.reason
    assert len(mock_ledger.submitted) == 1


# ── Transient failures ─────────────────────────────────────────────


async def test_network_failures_exhaust_budget(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(*[network_error() for _ in range(5)])

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert outcome == PermanentFailure(FailureKind.RETRY_EXHAUSTED, REASON_EXHAUSTED)
    assert len(mock_ledger.submitted) == 5
    assert fake_sleep.delays == [5.0, 5.0, 5.0, 5.0]


async def test_network_failure_then_success(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(network_error(), network_error())

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert outcome == Success(tx_hash="hash0003")
    assert fake_sleep.delays == [5.0, 5.0]


async def test_bad_sequence_rebuilds_with_fresh_sequence(mock_ledger):
    async def sleep_and_advance(seconds: float) -> None:
        # Another transaction from the account landed meanwhile
        mock_ledger.sequence = 2000

    submitter = ClaimableBalanceSubmitter(
        mock_ledger, TEST_KEYPAIR, TESTNET_PASSPHRASE, sleep=sleep_and_advance,
    )
    mock_ledger.queue(submit_error("tx_bad_seq"))

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert outcome == Success(tx_hash="hash0002")
    assert mock_ledger.submitted[0].transaction.sequence == 1001
    assert mock_ledger.submitted[1].transaction.sequence == 2001
    assert mock_ledger.load_calls == 2


async def test_expired_backoff(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(submit_error("tx_too_late"))

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert isinstance(outcome, Success)
    assert fake_sleep.delays == [1.0]


async def test_fee_backoff(submitter, mock_ledger, fake_sleep):
    mock_ledger.queue(submit_error("tx_insufficient_fee"))

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert isinstance(outcome, Success)
    assert fake_sleep.delays == [5.0]


async def test_account_load_failure_counts_as_attempt(submitter, mock_ledger, fake_sleep):
    mock_ledger.load_errors.append(network_error())

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert isinstance(outcome, Success)
    assert mock_ledger.load_calls == 2
    assert len(mock_ledger.submitted) == 1
    assert fake_sleep.delays == [5.0]


async def test_single_attempt_budget_does_not_sleep(mock_ledger):
    sleep = FakeSleep()
    submitter = ClaimableBalanceSubmitter(
        mock_ledger, TEST_KEYPAIR, TESTNET_PASSPHRASE, max_attempts=1, sleep=sleep,
    )
    mock_ledger.queue(network_error())

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert outcome.kind is FailureKind.RETRY_EXHAUSTED
    assert sleep.delays == []


# ── Secret handling ────────────────────────────────────────────────


async def test_secret_scrubbed_from_reason_and_logs(submitter, mock_ledger, caplog):
    mock_ledger.queue(RuntimeError(f"signer {TEST_SECRET} rejected"))

    with caplog.at_level(logging.DEBUG):
        outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A)

    assert isinstance(outcome, PermanentFailure)
    assert TEST_SECRET not in outcome.reason
    assert "[SECRET]" in outcome.reason
    assert TEST_SECRET not in caplog.text


# ── Progress ───────────────────────────────────────────────────────


async def test_progress_messages(submitter, mock_ledger):
    messages: list[str] = []

    async def progress(text: str) -> None:
        messages.append(text)

    mock_ledger.queue(
        network_error(),
        submit_error("tx_failed", ["op_no_trust", "op_success"]),
    )

    await submitter.submit_batch(make_assets(2), RECIPIENT_A, progress=progress)

    assert len(messages) == 2
    assert "Retrying" in messages[0]
    assert "trustline" in messages[1]


async def test_failing_progress_callback_is_ignored(submitter, mock_ledger):
    async def progress(text: str) -> None:
        raise ConnectionError("chat offline")

    mock_ledger.queue(network_error())

    outcome = await submitter.submit_batch(make_assets(1), RECIPIENT_A, progress=progress)

    assert isinstance(outcome, Success)


# ── Serialization ──────────────────────────────────────────────────


async def test_concurrent_batches_are_serialized():
    ledger = MockLedger(sequence=1000, submit_delay=0.01)
    submitter = ClaimableBalanceSubmitter(ledger, TEST_KEYPAIR, TESTNET_PASSPHRASE)

    outcomes = await asyncio.gather(
        submitter.submit_batch(make_assets(2), RECIPIENT_A),
        submitter.submit_batch(make_assets(3), RECIPIENT_B),
    )

    assert all(isinstance(o, Success) for o in outcomes)
    assert ledger.max_in_flight == 1
    assert sorted(e.transaction.sequence for e in ledger.submitted) == [1001, 1002]
