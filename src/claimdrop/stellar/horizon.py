"""Horizon ledger client - account loads and transaction submission via ServerAsync."""

from __future__ import annotations

import asyncio
import logging

from stellar_sdk import AiohttpClient, ServerAsync, TransactionEnvelope
from stellar_sdk.client.base_async_client import BaseAsyncClient
from stellar_sdk.exceptions import BaseHorizonError
from stellar_sdk.exceptions import ConnectionError as HorizonConnectionError

from claimdrop.errors import LedgerError, LedgerSubmitError, LedgerTransportError
from claimdrop.models.assets import NATIVE_CODE
from claimdrop.models.records import AccountSnapshot, Balance

log = logging.getLogger(__name__)

# Gateway statuses carry no result codes; the transaction may not have reached core
GATEWAY_STATUSES = frozenset({502, 503, 504})


def _parse_balance(raw: dict) -> Balance | None:
    """Convert a Horizon balance line. Liquidity pool shares are skipped."""
    asset_type = raw.get("asset_type")
    if asset_type == "native":
        return Balance(NATIVE_CODE, None, str(raw.get("balance", "0")))
    if asset_type in ("credit_alphanum4", "credit_alphanum12"):
        return Balance(
            str(raw["asset_code"]),
            str(raw["asset_issuer"]),
            str(raw.get("balance", "0")),
        )
    return None


def _translate(exc: BaseHorizonError, action: str) -> LedgerError:
    """Map a Horizon error response onto the ledger error hierarchy."""
    status = exc.status
    if status in GATEWAY_STATUSES:
        return LedgerTransportError(f"{action} returned HTTP {status}", status)

    result_codes = (exc.extras or {}).get("result_codes")
    if result_codes:
        tx_code = str(result_codes.get("transaction", ""))
        op_codes = [str(c) for c in result_codes.get("operations") or []]
        return LedgerSubmitError(
            f"transaction failed: {tx_code} {op_codes}",
            transaction_code=tx_code,
            operation_codes=op_codes,
            status=status,
        )

    return LedgerError(
        f"{action} returned HTTP {status}: {exc.title or 'unknown error'}", status,
    )


class HorizonLedgerClient:
    """Implements LedgerClient on top of stellar_sdk's ServerAsync.

    Horizon errors are translated once here so the submitter only sees
    LedgerTransportError, LedgerSubmitError or LedgerError.
    """

    def __init__(
        self,
        horizon_url: str,
        request_timeout: float = 30.0,
        client: BaseAsyncClient | None = None,
    ) -> None:
        self._client = client or AiohttpClient(
            request_timeout=request_timeout, post_timeout=request_timeout,
        )
        self._server = ServerAsync(horizon_url=horizon_url, client=self._client)

    async def close(self) -> None:
        await self._server.close()

    async def load_account(self, account_id: str) -> AccountSnapshot:
        try:
            data = await self._server.accounts().account_id(account_id).call()
        except (HorizonConnectionError, asyncio.TimeoutError) as exc:
            raise LedgerTransportError(f"account load failed: {exc}") from exc
        except BaseHorizonError as exc:
            raise _translate(exc, "account load") from exc

        balances = tuple(
            b for b in (_parse_balance(raw) for raw in data.get("balances", [])) if b
        )
        snapshot = AccountSnapshot(
            account_id=data.get("account_id", account_id),
            sequence=int(data["sequence"]),
            balances=balances,
        )
        log.debug(
            "Loaded %s (seq=%d, %d balances)",
            account_id[:8], snapshot.sequence, len(balances),
        )
        return snapshot

    async def submit_transaction(self, envelope: TransactionEnvelope) -> str:
        try:
            resp = await self._server.submit_transaction(
                envelope, skip_memo_required_check=True,
            )
        except (HorizonConnectionError, asyncio.TimeoutError) as exc:
            raise LedgerTransportError(f"submit failed: {exc}") from exc
        except BaseHorizonError as exc:
            raise _translate(exc, "submit") from exc
        return str(resp["hash"])
