"""Pytest configuration for shared fixtures."""

from __future__ import annotations

from decimal import Decimal

import pytest
from loguru import logger

from liquid_staking.models import Validator, Zone
from liquid_staking.store import DelegationStore, IntentStore, MemoryKVStore, ZoneStore


@pytest.fixture(scope="session", autouse=True)
def silence_loguru_handlers() -> None:
    """Route Loguru output to a no-op sink during tests to avoid closed stream errors."""
    logger.remove()
    logger.add(lambda _: None, catch=True)
    yield


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def zone_store(kv: MemoryKVStore) -> ZoneStore:
    return ZoneStore(kv)


@pytest.fixture
def intent_store(kv: MemoryKVStore) -> IntentStore:
    return IntentStore(kv)


@pytest.fixture
def delegation_store(kv: MemoryKVStore) -> DelegationStore:
    return DelegationStore(kv)


@pytest.fixture
def zone() -> Zone:
    validators = [
        Validator(valoper_address=f"cosmosvaloper1{char * 38}", voting_power=1000)
        for char in "acde"
    ]
    return Zone(
        chain_id="cosmoshub-4",
        connection_id="connection-0",
        account_prefix="cosmos",
        local_denom="uqatom",
        base_denom="uatom",
        redemption_rate=Decimal("1"),
        delegation_address=f"cosmos1{'z' * 38}",
        validators=validators,
    )
