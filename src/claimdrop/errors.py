"""Exception hierarchy shared across claimdrop components."""

from __future__ import annotations


class ClaimdropError(Exception):
    """Base class for all claimdrop errors."""


class ConfigError(ClaimdropError):
    """Configuration is missing or malformed."""


class CatalogError(ClaimdropError):
    """The asset catalog could not be loaded or contains an invalid row."""


class ServiceNotReadyError(ClaimdropError):
    """A distribution was requested before startup checks completed."""


class MissingTrustlinesError(ClaimdropError):
    """The distributor account lacks trustlines for configured assets."""

    def __init__(self, missing: set[tuple[str, str | None]]) -> None:
        self.missing = sorted(missing, key=lambda pair: (pair[0], pair[1] or ""))
        listed = ", ".join(f"{code}:{issuer}" for code, issuer in self.missing)
        super().__init__(f"distributor is missing trustlines for: {listed}")


# ── Ledger errors ──────────────────────────────────────


class LedgerError(ClaimdropError):
    """A ledger request failed without a recognised result payload."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class LedgerTransportError(LedgerError):
    """No structured response: connection failure, timeout or gateway error."""


class LedgerSubmitError(LedgerError):
    """Horizon rejected a transaction and returned result codes."""

    def __init__(
        self,
        message: str,
        transaction_code: str,
        operation_codes: list[str] | None = None,
        status: int | None = 400,
    ) -> None:
        super().__init__(message, status=status)
        self.transaction_code = transaction_code
        self.operation_codes = list(operation_codes or [])
