"""Shared fixtures for staking_client tests."""

from __future__ import annotations

import pytest

from staking_client.client import StakingClient
from staking_client.ethereum.signer import KeySigner

from tests.mocks import CONTRACT_ADDRESS, FakeLedger

POLL_INTERVAL = 0.01


def make_client(ledger: FakeLedger, **overrides) -> StakingClient:
    """Build a StakingClient over the fake ledger with fast polling."""
    options = dict(poll_interval=POLL_INTERVAL, confirmation_timeout=2.0)
    options.update(overrides)
    return StakingClient(ledger, CONTRACT_ADDRESS, **options)


@pytest.fixture
def signers() -> list[KeySigner]:
    """Five fresh keys; the first one deploys (owns) the contract."""
    return [KeySigner.generate() for _ in range(5)]


@pytest.fixture
def owner(signers) -> KeySigner:
    return signers[0]


@pytest.fixture
def ledger(owner) -> FakeLedger:
    return FakeLedger(owner=owner.address, min_self_stake=100)


@pytest.fixture
def client(ledger) -> StakingClient:
    return make_client(ledger)
