"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from claimdrop.errors import ConfigError
from claimdrop.models.config import MAX_OPERATIONS_PER_TX, DistributorConfig
from claimdrop.stellar.keys import is_valid_address

NETWORKS = {
    "public": {
        "horizon_url": "https://horizon.stellar.org",
        "network_passphrase": "Public Global Stellar Network ; September 2015",
        "explorer_url": "https://stellar.expert/explorer/public",
    },
    "testnet": {
        "horizon_url": "https://horizon-testnet.stellar.org",
        "network_passphrase": "Test SDF Network ; September 2015",
        "explorer_url": "https://stellar.expert/explorer/testnet",
    },
}


def parse_primary_asset(value: str) -> tuple[str, str]:
    """Parse ``CODE:ISSUER`` into a (code, issuer) pair."""
    code, sep, issuer = value.strip().partition(":")
    if not sep or not code or not is_valid_address(issuer):
        raise ConfigError(f"primary_asset must be CODE:ISSUER, got {value!r}")
    return code, issuer


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "CLAIMDROP_",
) -> DistributorConfig:
    """Load distributor configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (CLAIMDROP_SECRET, etc.)
        2. TOML config file
        3. Network presets, then defaults from DistributorConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = DistributorConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    network = os.environ.get(f"{env_prefix}NETWORK") or stellar.get("network")
    if network:
        _apply_network(cfg, str(network))
    if v := stellar.get("horizon_url"):
        cfg.horizon_url = str(v)
    if v := stellar.get("network_passphrase"):
        cfg.network_passphrase = str(v)
    if v := stellar.get("distributor_secret"):
        cfg.distributor_secret = str(v)
    if v := stellar.get("base_fee"):
        cfg.base_fee = int(v)
    if v := stellar.get("request_timeout"):
        cfg.request_timeout = float(v)

    # ── Distribution section ───────────────────────────────
    dist = raw.get("distribution", {})
    if v := dist.get("catalog_path"):
        cfg.catalog_path = str(v)
    if v := dist.get("primary_asset"):
        cfg.primary_asset = parse_primary_asset(str(v))
    if v := dist.get("batch_size"):
        cfg.batch_size = int(v)
    if v := dist.get("max_attempts"):
        cfg.max_attempts = int(v)
    if v := dist.get("tx_timeout"):
        cfg.tx_timeout = int(v)
    if v := dist.get("explorer_url"):
        cfg.explorer_url = str(v)

    # ── Cooldown section ───────────────────────────────────
    cooldown = raw.get("cooldown", {})
    if (v := cooldown.get("seconds")) is not None:
        cfg.cooldown_seconds = float(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.distributor_secret = secret
    if url := os.environ.get(f"{env_prefix}HORIZON_URL"):
        cfg.horizon_url = url
    if catalog := os.environ.get(f"{env_prefix}CATALOG"):
        cfg.catalog_path = catalog

    if not 1 <= cfg.batch_size <= MAX_OPERATIONS_PER_TX:
        raise ConfigError(
            f"batch_size must be between 1 and {MAX_OPERATIONS_PER_TX}, got {cfg.batch_size}"
        )
    if cfg.max_attempts < 1:
        raise ConfigError(f"max_attempts must be at least 1, got {cfg.max_attempts}")

    # Expand ~ in paths
    cfg.catalog_path = str(Path(cfg.catalog_path).expanduser())
    if cfg.db_path and cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _apply_network(cfg: DistributorConfig, network: str) -> None:
    preset = NETWORKS.get(network)
    if preset is None:
        raise ConfigError(f"unknown network {network!r} (expected one of {sorted(NETWORKS)})")
    cfg.network = network
    cfg.horizon_url = preset["horizon_url"]
    cfg.network_passphrase = preset["network_passphrase"]
    cfg.explorer_url = preset["explorer_url"]
