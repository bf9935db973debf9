"""Tests for zone-scoped storage."""

from __future__ import annotations

from decimal import Decimal

import pytest

from liquid_staking.errors import BalanceLookupError
from liquid_staking.models import Coin, Delegation, DelegatorIntent, ValidatorIntent, Zone
from liquid_staking.store import (
    DelegationStore,
    IntentStore,
    MemoryKVStore,
    StaticBalances,
    ZoneStore,
    intent_key,
    length_prefixed,
)

VAL_A = f"cosmosvaloper1{'a' * 38}"
VAL_B = f"cosmosvaloper1{'c' * 38}"
DELEGATOR_1 = f"quick1{'q' * 38}"
DELEGATOR_2 = f"quick1{'p' * 38}"


def test_memory_store_iterates_prefix_in_order() -> None:
    kv = MemoryKVStore()
    kv.set(b"\x01b", b"2")
    kv.set(b"\x01a", b"1")
    kv.set(b"\x02a", b"3")

    assert list(kv.iterate(b"\x01")) == [(b"\x01a", b"1"), (b"\x01b", b"2")]

    kv.delete(b"\x01a")
    kv.delete(b"missing")
    assert kv.get(b"\x01a") is None
    assert len(kv) == 2


def test_length_prefixed_rejects_long_segments() -> None:
    assert length_prefixed("abc") == b"\x03abc"
    with pytest.raises(ValueError):
        length_prefixed("x" * 256)


def test_intent_namespaces_are_separate(zone: Zone) -> None:
    assert intent_key(zone, DELEGATOR_1, snapshot=False) != intent_key(
        zone, DELEGATOR_1, snapshot=True
    )


def test_get_intent_defaults_to_empty(zone: Zone, intent_store: IntentStore) -> None:
    intent = intent_store.get_intent(zone, DELEGATOR_1)

    assert intent.delegator == DELEGATOR_1
    assert intent.is_empty()


def test_intent_round_trips_decimal_weights(zone: Zone, intent_store: IntentStore) -> None:
    record = DelegatorIntent(
        delegator=DELEGATOR_1,
        intents={
            VAL_A: ValidatorIntent(valoper_address=VAL_A, weight=Decimal("0.333333333333333333")),
        },
    )
    intent_store.set_intent(zone, record)

    restored = intent_store.get_intent(zone, DELEGATOR_1)
    assert restored.intents[VAL_A].weight == Decimal("0.333333333333333333")

    intent_store.delete_intent(zone, DELEGATOR_1)
    assert intent_store.all_intents(zone) == []


def test_intents_are_scoped_per_zone(zone: Zone, intent_store: IntentStore) -> None:
    other = zone.model_copy(update={"chain_id": "osmosis-1"})
    intent_store.set_intent(zone, DelegatorIntent(delegator=DELEGATOR_1))
    intent_store.set_intent(other, DelegatorIntent(delegator=DELEGATOR_2))

    assert [r.delegator for r in intent_store.all_intents(zone)] == [DELEGATOR_1]
    assert [r.delegator for r in intent_store.all_intents(other)] == [DELEGATOR_2]


def test_zone_store_round_trip(zone: Zone, zone_store: ZoneStore) -> None:
    zone.withdrawal_waitgroup = 3
    zone_store.set_zone(zone)

    restored = zone_store.get_zone(zone.chain_id)
    assert restored is not None
    assert restored.withdrawal_waitgroup == 3
    assert [z.chain_id for z in zone_store.iterate_zones()] == [zone.chain_id]

    zone_store.delete_zone(zone.chain_id)
    assert zone_store.get_zone(zone.chain_id) is None


def _delegation(delegator: str, validator: str, amount: int) -> Delegation:
    return Delegation(
        delegation_address=delegator,
        validator_address=validator,
        amount=Coin(denom="uatom", amount=amount),
    )


def test_delegation_map_sums_per_validator(
    zone: Zone, delegation_store: DelegationStore
) -> None:
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_1, VAL_A, 100))
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_2, VAL_A, 50))
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_2, VAL_B, 25))

    allocations, total = delegation_store.delegation_map(zone)

    assert allocations == {VAL_A: 150, VAL_B: 25}
    assert total == 175


def test_delegation_lookups(zone: Zone, delegation_store: DelegationStore) -> None:
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_1, VAL_A, 100))
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_2, VAL_A, 50))
    delegation_store.set_delegation(zone, _delegation(DELEGATOR_2, VAL_B, 25))

    found = delegation_store.get_delegation(zone, DELEGATOR_2, VAL_B)
    assert found is not None
    assert found.amount.amount == 25
    assert delegation_store.get_delegation(zone, DELEGATOR_1, VAL_B) is None

    assert [d.validator_address for d in delegation_store.delegator_delegations(zone, DELEGATOR_2)] == [
        VAL_A,
        VAL_B,
    ]
    assert len(delegation_store.validator_delegations(zone, VAL_A)) == 2

    delegation_store.remove_delegation(zone, found)
    assert len(delegation_store.all_delegations(zone)) == 2


def test_static_balances() -> None:
    balances = StaticBalances({DELEGATOR_1: 42}, account_hrp="quick")

    assert balances.balance(DELEGATOR_1, "uqatom") == 42
    assert balances.balance(DELEGATOR_1, "uatom") == 42
    assert balances.balance(DELEGATOR_2, "uqatom") == 0
    with pytest.raises(BalanceLookupError):
        balances.balance(f"cosmos1{'q' * 38}", "uqatom")
    with pytest.raises(BalanceLookupError):
        balances.balance("", "uqatom")
