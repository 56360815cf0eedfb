"""Configuration models for the distributor."""

from __future__ import annotations

from dataclasses import dataclass

# Stellar caps a transaction at 100 operations
MAX_OPERATIONS_PER_TX = 100


@dataclass
class DistributorConfig:
    """Complete distributor configuration."""

    # Daemon
    log_level: str = "info"

    # Stellar
    network: str = "public"
    horizon_url: str = "https://horizon.stellar.org"
    network_passphrase: str = "Public Global Stellar Network ; September 2015"
    distributor_secret: str = ""  # loaded from env var CLAIMDROP_SECRET
    base_fee: int = 100  # stroops per operation
    request_timeout: float = 30.0  # seconds per Horizon request

    # Distribution
    catalog_path: str = "assets.csv"
    primary_asset: tuple[str, str] | None = None  # (code, issuer)
    batch_size: int = MAX_OPERATIONS_PER_TX
    max_attempts: int = 5
    tx_timeout: int = 180  # seconds of validity per built transaction
    explorer_url: str = "https://stellar.expert/explorer/public"

    # Cooldown
    cooldown_seconds: float = 60.0

    # Storage ("" keeps cooldown state in memory only)
    db_path: str = ""
