"""Tier 3 fixtures: real Stellar testnet distribution.

Needs CLAIMDROP_TESTNET_SECRET pointing at a testnet account that Friendbot
can top up. Recipients are fresh keypairs funded per session.
"""

from __future__ import annotations

import os

import httpx
import pytest
from stellar_sdk import Keypair

from claimdrop.stellar.horizon import HorizonLedgerClient

HORIZON_URL = "https://horizon-testnet.stellar.org"
NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"
FRIENDBOT_URL = "https://friendbot.stellar.org"
EXPLORER_BASE = "https://stellar.expert/explorer/testnet"

DISTRIBUTOR_SECRET = os.environ.get("CLAIMDROP_TESTNET_SECRET", "")


def fund(public_key: str) -> None:
    """Fund via Friendbot. A 400 means the account already exists."""
    try:
        r = httpx.get(f"{FRIENDBOT_URL}?addr={public_key}", timeout=30)
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        pytest.skip(f"Friendbot unreachable: {exc}")
    if r.status_code not in (200, 400):
        pytest.skip(f"Friendbot returned {r.status_code} for {public_key}")


@pytest.fixture(scope="session")
def testnet_reachable():
    """Gate: skip all tier3 tests without credentials or a healthy Horizon."""
    if not DISTRIBUTOR_SECRET:
        pytest.skip("CLAIMDROP_TESTNET_SECRET not set")
    try:
        r = httpx.get(HORIZON_URL, timeout=10)
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        pytest.skip(f"Horizon testnet unreachable: {exc}")
    if r.status_code != 200:
        pytest.skip(f"Horizon testnet returned {r.status_code}")
    return True


@pytest.fixture(scope="session")
def distributor_keypair(testnet_reachable):
    kp = Keypair.from_secret(DISTRIBUTOR_SECRET)
    fund(kp.public_key)
    return kp


@pytest.fixture
def recipient_keypair(testnet_reachable):
    kp = Keypair.random()
    fund(kp.public_key)
    return kp


@pytest.fixture
async def horizon():
    client = HorizonLedgerClient(HORIZON_URL)
    yield client
    await client.close()
