"""Shared fixtures for claimdrop tests."""

from __future__ import annotations

import os

import pytest
from pytest_metadata.plugin import metadata_key

from claimdrop.distribution.orchestrator import DistributionOrchestrator
from claimdrop.models.config import DistributorConfig
from claimdrop.policy.cooldown import CooldownGuard
from claimdrop.stellar.submitter import ClaimableBalanceSubmitter
from claimdrop.storage.memory import InMemoryCooldownStore
from claimdrop.storage.sqlite import SQLiteStateStore

from tests.factories import DISTRIBUTOR_PUBLIC, TEST_KEYPAIR, TEST_SECRET, TESTNET_PASSPHRASE
from tests.mocks import (
    FakeClock,
    FakeSleep,
    MockLedger,
    MockSubmitter,
    RecordingReplyChannel,
)

EXPLORER_BASE = "https://stellar.expert/explorer/testnet"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Stellar Testnet"
    meta["Distributor Account"] = DISTRIBUTOR_PUBLIC


def explorer_link(kind: str, key: str, label: str | None = None) -> str:
    """HTML anchor to stellar.expert for the report."""
    text = label or f"{key[:8]}...{key[-4:]}"
    return f'<a href="{EXPLORER_BASE}/{kind}/{key}" target="_blank">{text}</a>'


def pytest_html_results_summary(prefix, summary, postfix):
    """Put the distributor's explorer link above the HTML report results."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Stellar Testnet Explorer</strong><br/>"
        f"Distributor: {explorer_link('account', DISTRIBUTOR_PUBLIC, DISTRIBUTOR_PUBLIC)}"
        "</div>"
    )


def make_test_config(**overrides) -> DistributorConfig:
    """Build a DistributorConfig suitable for testing."""
    defaults = dict(
        network="testnet",
        horizon_url="https://horizon-testnet.stellar.org",
        network_passphrase=TESTNET_PASSPHRASE,
        distributor_secret=TEST_SECRET,
        explorer_url=EXPLORER_BASE,
        cooldown_seconds=60.0,
        db_path="",
    )
    defaults.update(overrides)
    return DistributorConfig(**defaults)


@pytest.fixture
def clean_env(monkeypatch):
    """Drop CLAIMDROP_* variables from the environment."""
    for name in list(os.environ):
        if name.startswith("CLAIMDROP_"):
            monkeypatch.delenv(name)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStateStore."""
    s = SQLiteStateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_ledger():
    return MockLedger(sequence=1000)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def clock():
    return FakeClock(now=1_000.0)


@pytest.fixture
def replies():
    return RecordingReplyChannel()


@pytest.fixture
def mock_submitter():
    return MockSubmitter()


@pytest.fixture
def submitter(mock_ledger, fake_sleep):
    """Real submitter over the mock ledger, with backoff recorded not slept."""
    return ClaimableBalanceSubmitter(
        ledger=mock_ledger,
        keypair=TEST_KEYPAIR,
        network_passphrase=TESTNET_PASSPHRASE,
        max_attempts=5,
        sleep=fake_sleep,
    )


@pytest.fixture
def cooldown():
    return CooldownGuard(InMemoryCooldownStore(), cooldown_seconds=60.0)


@pytest.fixture
def orchestrator(mock_submitter, cooldown, replies, clock):
    """Orchestrator over the mock submitter."""
    return DistributionOrchestrator(
        submitter=mock_submitter,
        cooldown=cooldown,
        notifier=replies,
        explorer_url=EXPLORER_BASE,
        clock=clock,
    )
