"""Key-value storage contracts and zone-scoped record stores."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Protocol

from loguru import logger

from liquid_staking.addresses import validate_address
from liquid_staking.core.constants import (
    KEY_PREFIX_DELEGATION,
    KEY_PREFIX_INTENT,
    KEY_PREFIX_SNAPSHOT_INTENT,
    KEY_PREFIX_ZONE,
    MAX_KEY_SEGMENT_LENGTH,
)
from liquid_staking.errors import BalanceLookupError, InvalidAddressError
from liquid_staking.models import Delegation, DelegatorIntent, Zone


class KVStore(Protocol):
    """Byte-keyed store supplied by the host chain."""

    def get(self, key: bytes) -> bytes | None:
        """Return the value stored under key, or None."""

    def set(self, key: bytes, value: bytes) -> None:
        """Store value under key."""

    def delete(self, key: bytes) -> None:
        """Remove key if present."""

    def iterate(self, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs under prefix in ascending key order."""


class BalanceLookup(Protocol):
    """Resolves a depositor's balance of a denomination."""

    def balance(self, address: str, denom: str) -> int:
        """Return the balance, raising BalanceLookupError if unresolvable."""


class MemoryKVStore:
    """In-memory KVStore with ordered prefix iteration."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}

    def get(self, key: bytes) -> bytes | None:
        return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._data[key] = value

    def delete(self, key: bytes) -> None:
        self._data.pop(key, None)

    def iterate(self, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        # Materialize first so callers may mutate while iterating.
        items = sorted(item for item in self._data.items() if item[0].startswith(prefix))
        yield from items

    def __len__(self) -> int:
        return len(self._data)


class StaticBalances:
    """Balance lookup backed by a fixed mapping of address to amount.

    The mapping holds a single denomination: denom is accepted for protocol
    compatibility but not consulted, so the same amount answers both local
    and base denomination queries. Unknown but well-formed addresses hold
    zero, matching a bank module.
    """

    def __init__(self, balances: Mapping[str, int], *, account_hrp: str | None = None) -> None:
        self._balances = dict(balances)
        self._account_hrp = account_hrp

    def balance(self, address: str, denom: str) -> int:
        try:
            validate_address(address, self._account_hrp)
        except InvalidAddressError as exc:
            raise BalanceLookupError(f"cannot resolve balance for {address!r}: {exc}") from exc
        return self._balances.get(address, 0)


def length_prefixed(value: str) -> bytes:
    """Encode a variable-length key segment with a one-byte length prefix."""
    raw = value.encode("utf-8")
    if len(raw) > MAX_KEY_SEGMENT_LENGTH:
        raise ValueError(f"key segment too long: {len(raw)} bytes")
    return bytes([len(raw)]) + raw


def zone_key(chain_id: str) -> bytes:
    return KEY_PREFIX_ZONE + length_prefixed(chain_id)


def intents_prefix(zone: Zone, snapshot: bool) -> bytes:
    prefix = KEY_PREFIX_SNAPSHOT_INTENT if snapshot else KEY_PREFIX_INTENT
    return prefix + length_prefixed(zone.chain_id)


def intent_key(zone: Zone, delegator: str, snapshot: bool) -> bytes:
    return intents_prefix(zone, snapshot) + length_prefixed(delegator)


def delegations_prefix(zone: Zone) -> bytes:
    return KEY_PREFIX_DELEGATION + length_prefixed(zone.chain_id)


def delegator_delegations_prefix(zone: Zone, delegator: str) -> bytes:
    return delegations_prefix(zone) + length_prefixed(delegator)


def delegation_key(zone: Zone, delegator: str, validator: str) -> bytes:
    return delegator_delegations_prefix(zone, delegator) + length_prefixed(validator)


class ZoneStore:
    """Persists zone records keyed by chain id."""

    def __init__(self, store: KVStore) -> None:
        self._store = store

    def get_zone(self, chain_id: str) -> Zone | None:
        value = self._store.get(zone_key(chain_id))
        if value is None:
            return None
        return Zone.model_validate_json(value)

    def set_zone(self, zone: Zone) -> None:
        self._store.set(zone_key(zone.chain_id), zone.model_dump_json().encode("utf-8"))

    def delete_zone(self, chain_id: str) -> None:
        self._store.delete(zone_key(chain_id))

    def iterate_zones(self) -> Iterator[Zone]:
        for _, value in self._store.iterate(KEY_PREFIX_ZONE):
            yield Zone.model_validate_json(value)


class IntentStore:
    """Live and snapshot delegator intents for each zone."""

    def __init__(self, store: KVStore) -> None:
        self._store = store

    def get_intent(self, zone: Zone, delegator: str, snapshot: bool = False) -> DelegatorIntent:
        """Return the delegator's intent, or an empty one if none is stored."""
        value = self._store.get(intent_key(zone, delegator, snapshot))
        if not value:
            return DelegatorIntent(delegator=delegator)
        return DelegatorIntent.model_validate_json(value)

    def set_intent(self, zone: Zone, intent: DelegatorIntent, snapshot: bool = False) -> None:
        self._store.set(
            intent_key(zone, intent.delegator, snapshot),
            intent.model_dump_json().encode("utf-8"),
        )

    def delete_intent(self, zone: Zone, delegator: str, snapshot: bool = False) -> None:
        self._store.delete(intent_key(zone, delegator, snapshot))

    def iterate_intents(self, zone: Zone, snapshot: bool = False) -> Iterator[DelegatorIntent]:
        for _, value in self._store.iterate(intents_prefix(zone, snapshot)):
            yield DelegatorIntent.model_validate_json(value)

    def all_intents(self, zone: Zone, snapshot: bool = False) -> list[DelegatorIntent]:
        return list(self.iterate_intents(zone, snapshot))

    def clear(self, zone: Zone, snapshot: bool) -> int:
        """Delete every intent in one namespace, returning the number removed."""
        keys = [key for key, _ in self._store.iterate(intents_prefix(zone, snapshot))]
        for key in keys:
            self._store.delete(key)
        return len(keys)


class DelegationStore:
    """Delegation records for each zone, keyed by delegator then validator."""

    def __init__(self, store: KVStore) -> None:
        self._store = store

    def get_delegation(self, zone: Zone, delegator: str, validator: str) -> Delegation | None:
        value = self._store.get(delegation_key(zone, delegator, validator))
        if value is None:
            return None
        return Delegation.model_validate_json(value)

    def set_delegation(self, zone: Zone, delegation: Delegation) -> None:
        key = delegation_key(zone, delegation.delegation_address, delegation.validator_address)
        self._store.set(key, delegation.model_dump_json().encode("utf-8"))

    def remove_delegation(self, zone: Zone, delegation: Delegation) -> None:
        key = delegation_key(zone, delegation.delegation_address, delegation.validator_address)
        self._store.delete(key)

    def iterate_delegations(self, zone: Zone) -> Iterator[Delegation]:
        for _, value in self._store.iterate(delegations_prefix(zone)):
            yield Delegation.model_validate_json(value)

    def all_delegations(self, zone: Zone) -> list[Delegation]:
        return list(self.iterate_delegations(zone))

    def delegator_delegations(self, zone: Zone, delegator: str) -> list[Delegation]:
        prefix = delegator_delegations_prefix(zone, delegator)
        return [Delegation.model_validate_json(value) for _, value in self._store.iterate(prefix)]

    def validator_delegations(self, zone: Zone, validator: str) -> list[Delegation]:
        return [
            delegation
            for delegation in self.iterate_delegations(zone)
            if delegation.validator_address == validator
        ]

    def delegation_map(self, zone: Zone) -> tuple[dict[str, int], int]:
        """Sum delegated amounts per validator.

        Returns:
            Tuple of (per-validator holdings, total held)
        """
        allocations: dict[str, int] = {}
        total = 0
        for delegation in self.iterate_delegations(zone):
            amount = delegation.amount.amount
            allocations[delegation.validator_address] = (
                allocations.get(delegation.validator_address, 0) + amount
            )
            total += amount
        logger.debug(
            "Delegation map for {}: {} validators, {} total",
            zone.chain_id,
            len(allocations),
            total,
        )
        return allocations, total
