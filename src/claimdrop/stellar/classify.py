"""Decode ledger errors into a closed FailureKind, once per attempt."""

from __future__ import annotations

from claimdrop.errors import LedgerSubmitError, LedgerTransportError
from claimdrop.models.outcomes import FailureKind, LedgerFailure

# Transaction-level result codes that are safe to retry
_TX_CODE_KINDS = {
    "tx_bad_seq": FailureKind.SEQUENCE,
    "tx_too_late": FailureKind.EXPIRED,
    "tx_insufficient_fee": FailureKind.FEE,
}

# Distributor cannot fund the batch; retrying will not change its balance
RESOURCE_TX_CODES = frozenset({"tx_insufficient_balance"})
RESOURCE_OP_CODES = frozenset({"op_underfunded", "op_low_reserve"})

# Recipient has no trustline for the asset of that operation
NO_TRUST_OP_CODES = frozenset({"op_no_trust"})


def classify_failure(exc: BaseException) -> LedgerFailure:
    """Map any exception raised during an attempt onto a LedgerFailure."""
    if isinstance(exc, LedgerTransportError):
        return LedgerFailure(FailureKind.NETWORK, str(exc))
    if isinstance(exc, LedgerSubmitError):
        return classify_result_codes(
            exc.transaction_code, exc.operation_codes, str(exc),
        )
    return LedgerFailure(FailureKind.UNCLASSIFIED, str(exc) or type(exc).__name__)


def classify_result_codes(
    transaction_code: str,
    operation_codes: list[str],
    detail: str = "",
) -> LedgerFailure:
    """Classify Horizon ``extras.result_codes``.

    When a failed transaction reports several kinds of operation codes,
    resource exhaustion wins, then trustline pruning. Codes left over after
    pruning surface on their own in the next attempt.
    """
    detail = detail or f"{transaction_code} {operation_codes}"

    if kind := _TX_CODE_KINDS.get(transaction_code):
        return LedgerFailure(kind, detail)

    if transaction_code in RESOURCE_TX_CODES:
        return LedgerFailure(FailureKind.RESOURCE_EXHAUSTION, detail)

    if transaction_code == "tx_failed" and operation_codes:
        if any(code in RESOURCE_OP_CODES for code in operation_codes):
            return LedgerFailure(FailureKind.RESOURCE_EXHAUSTION, detail)

        rejected = frozenset(
            i for i, code in enumerate(operation_codes) if code in NO_TRUST_OP_CODES
        )
        if rejected:
            return LedgerFailure(
                FailureKind.PARTIAL_REJECTION, detail, rejected_indices=rejected,
            )

    return LedgerFailure(FailureKind.UNCLASSIFIED, detail)
