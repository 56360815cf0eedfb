"""CLI entry point for the claimdrop distributor."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from claimdrop.api.replies import ConsoleReplyChannel
from claimdrop.catalog import CsvAssetCatalog
from claimdrop.config import load_config
from claimdrop.errors import CatalogError, ClaimdropError, MissingTrustlinesError
from claimdrop.models.config import DistributorConfig
from claimdrop.service import DistributorService, run_distributions
from claimdrop.storage.sqlite import SQLiteStateStore


def _require_secret(cfg: DistributorConfig) -> None:
    """Exit with error if no distributor secret is configured."""
    if not cfg.distributor_secret:
        click.echo("Error: No distributor secret configured.", err=True)
        click.echo("Set CLAIMDROP_SECRET env var or distributor_secret in config.", err=True)
        sys.exit(1)


def _load(ctx: click.Context) -> DistributorConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except ClaimdropError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """claimdrop - distribute Stellar assets as claimable balances."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show distributor configuration."""
    cfg = _load(ctx)
    primary = ":".join(cfg.primary_asset) if cfg.primary_asset else "(not set)"
    click.echo(f"Network:      {cfg.network}")
    click.echo(f"Horizon:      {cfg.horizon_url}")
    click.echo(f"Catalog:      {cfg.catalog_path}")
    click.echo(f"Primary:      {primary}")
    click.echo(f"Batch size:   {cfg.batch_size}")
    click.echo(f"Attempts:     {cfg.max_attempts}")
    click.echo(f"Cooldown:     {cfg.cooldown_seconds:.0f}s")
    click.echo(f"DB path:      {cfg.db_path or '(in-memory)'}")
    click.echo(f"Secret:       {'***configured***' if cfg.distributor_secret else '(not set)'}")


@cli.command()
@click.pass_context
def assets(ctx: click.Context) -> None:
    """List the configured asset catalog."""
    cfg = _load(ctx)
    try:
        specs = CsvAssetCatalog(cfg.catalog_path).list_assets()
    except CatalogError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not specs:
        click.echo("No assets configured.")
        return
    for spec in specs:
        issuer = spec.issuer or "native"
        click.echo(f"{spec.code:<12} {spec.amount:>20}  {issuer}")
    click.echo(f"\n{len(specs)} assets")


# ── Pre-flight ─────────────────────────────────────────


@cli.command()
@click.pass_context
def preflight(ctx: click.Context) -> None:
    """Check that the distributor holds every configured asset."""
    cfg = _load(ctx)
    _require_secret(cfg)

    async def _preflight() -> None:
        service = DistributorService(cfg)
        try:
            await service.start()
            click.echo(
                f"OK: {service.public_key} holds all {len(service.assets)} assets"
            )
        finally:
            await service.close()

    try:
        asyncio.run(_preflight())
    except MissingTrustlinesError as exc:
        click.echo("Pre-flight FAILED. Missing trustlines:", err=True)
        for code, issuer in exc.missing:
            click.echo(f"  {code}:{issuer}", err=True)
        sys.exit(1)
    except ClaimdropError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ── Distribution ───────────────────────────────────────


@cli.command()
@click.argument("addresses", nargs=-1, required=True)
@click.option("--requester", default="cli", help="Requester id used for cooldowns")
@click.pass_context
def distribute(ctx: click.Context, addresses: tuple[str, ...], requester: str) -> None:
    """Send the catalog as claimable balances to one or more ADDRESSES.

    Each address is handled as a separate request; submissions share the
    distributor account and run one at a time.
    """
    cfg = _load(ctx)
    _require_secret(cfg)

    requests = [
        (requester if len(addresses) == 1 else f"{requester}-{i}", address)
        for i, address in enumerate(addresses, start=1)
    ]

    try:
        service = DistributorService(cfg, notifier=ConsoleReplyChannel())
        reports = asyncio.run(run_distributions(service, requests))
    except MissingTrustlinesError as exc:
        click.echo("Refusing to distribute. Missing trustlines:", err=True)
        for code, issuer in exc.missing:
            click.echo(f"  {code}:{issuer}", err=True)
        sys.exit(1)
    except ClaimdropError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if any(r.status in ("failed", "rejected") for r in reports):
        sys.exit(2)


@cli.command()
@click.option("--limit", type=int, default=20, help="Number of entries to show")
@click.pass_context
def history(ctx: click.Context, limit: int) -> None:
    """Show recent distributions (requires storage.db_path)."""
    cfg = _load(ctx)
    if not cfg.db_path:
        click.echo("No storage configured; history is kept only when db_path is set.")
        return

    async def _history():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            return await store.get_recent_distributions(limit)
        finally:
            await store.close()

    records = asyncio.run(_history())
    if not records:
        click.echo("No distributions recorded.")
        return
    for rec in records:
        click.echo(
            f"{rec.created_at[:19]}  {rec.status:<9} {rec.requester_id:<12} "
            f"{rec.address[:12]}...  {len(rec.tx_hashes)} tx"
        )
        if rec.reason:
            click.echo(f"    reason: {rec.reason}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
