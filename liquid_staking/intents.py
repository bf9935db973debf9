"""Intent ordinalization, merging and zone-wide aggregation."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal

from loguru import logger

from liquid_staking.addresses import is_valid_address, validate_address
from liquid_staking.errors import DegenerateAggregateError, InvalidIntentError, LiquidStakingError
from liquid_staking.models import Coin, DelegatorIntent, IntentVector, ValidatorIntent, Zone
from liquid_staking.numeric import ONE, ZERO, add, dec_sum, mul, quo_truncate, to_decimal
from liquid_staking.store import BalanceLookup, IntentStore, ZoneStore

_INTENT_ENTRY = re.compile(r"^(\d*\.?\d+)([a-zA-Z].*)$")


def ordinalize(intents: IntentVector, multiplier: Decimal | int) -> IntentVector:
    """Scale every weight by multiplier (fractions to absolute value units)."""
    factor = to_decimal(multiplier)
    return {
        key: intent.model_copy(update={"weight": mul(intent.weight, factor)})
        for key, intent in sorted(intents.items())
    }


def normalize(intents: IntentVector) -> IntentVector:
    """Scale weights so they sum to one.

    A zero-sum vector is returned unchanged; quotients are truncated so no
    weight can drift above its exact share.
    """
    total = dec_sum(intent.weight for intent in intents.values())
    if total.is_zero():
        return dict(intents)
    return {
        key: intent.model_copy(update={"weight": quo_truncate(intent.weight, total)})
        for key, intent in sorted(intents.items())
    }


def merge_intents(
    existing: IntentVector, multiplier: Decimal | int, incoming: IntentVector
) -> IntentVector:
    """Merge value-denominated incoming weights into a normalized vector.

    Args:
        existing: Current normalized intents
        multiplier: Value the existing fractions represent (e.g. scaled balance)
        incoming: Weights already expressed in value units

    Returns:
        New normalized vector; existing is returned as-is when incoming is empty
    """
    if not incoming:
        return existing

    merged = ordinalize(existing, multiplier)
    for key in sorted(incoming):
        intent = incoming[key]
        current = merged.get(intent.valoper_address)
        if current is None:
            merged[intent.valoper_address] = intent
        else:
            merged[intent.valoper_address] = current.model_copy(
                update={"weight": add(current.weight, intent.weight)}
            )
    return normalize(merged)


def add_ordinal(
    intent: DelegatorIntent, multiplier: Decimal | int, incoming: IntentVector
) -> DelegatorIntent:
    """Record-level merge; see merge_intents."""
    if not incoming:
        return intent
    return intent.model_copy(
        update={"intents": merge_intents(intent.intents, multiplier, incoming)}
    )


def parse_intents(text: str, validator_hrp: str | None = None) -> IntentVector:
    """Parse a signal string such as ``0.3cosmosvaloper1...,0.7cosmosvaloper1...``.

    Raises:
        InvalidIntentError: If an entry is malformed, repeated, or weights do not sum to one
        InvalidAddressError: If a validator address fails validation
    """
    entries = [chunk.strip() for chunk in text.split(",") if chunk.strip()]
    if not entries:
        raise InvalidIntentError("no intents provided")

    parsed: IntentVector = {}
    for entry in entries:
        match = _INTENT_ENTRY.match(entry)
        if match is None:
            raise InvalidIntentError(f"malformed intent entry: {entry!r}")
        raw_weight, address = match.groups()
        weight = Decimal(raw_weight)
        validate_address(address, validator_hrp)
        if address in parsed:
            raise InvalidIntentError(f"duplicate validator in intents: {address}")
        parsed[address] = ValidatorIntent(valoper_address=address, weight=weight)

    total = dec_sum(intent.weight for intent in parsed.values())
    if total != ONE:
        raise InvalidIntentError(f"intents do not sum to 1.0 (got {total})")
    return parsed


def intents_from_coins(coins: Iterable[Coin], validator_hrp: str | None = None) -> IntentVector:
    """Derive value-denominated intents from validator share tokens.

    Share denominations look like ``<valoper>/<record id>``; any other coin
    carries no validator preference and is ignored.
    """
    weights: dict[str, Decimal] = {}
    for coin in coins:
        if coin.is_zero() or "/" not in coin.denom:
            continue
        valoper = coin.denom.split("/", 1)[0]
        if not is_valid_address(valoper, validator_hrp):
            continue
        weights[valoper] = add(weights.get(valoper, ZERO), Decimal(coin.amount))
    return {
        valoper: ValidatorIntent(valoper_address=valoper, weight=weight)
        for valoper, weight in sorted(weights.items())
    }


def aggregate(
    records: Iterable[DelegatorIntent], balance_of: Callable[[str], int]
) -> IntentVector:
    """Reduce every depositor's intent into one normalized target vector.

    Each record is ordinalized by the depositor's balance before summing.
    Any lookup failure propagates before a result exists, so a partial
    aggregate can never be produced.

    Raises:
        BalanceLookupError: If a depositor's balance cannot be resolved
        DegenerateAggregateError: If a non-empty running map sums to zero
    """
    running: dict[str, Decimal] = {}
    total = ZERO
    for record in records:
        balance = balance_of(record.delegator)
        for key, intent in ordinalize(record.intents, balance).items():
            running[key] = add(running.get(key, ZERO), intent.weight)
            total = add(total, intent.weight)

    if running and total.is_zero():
        raise DegenerateAggregateError(
            f"ordinalized intent sum is zero across {len(running)} validators"
        )

    return {
        key: ValidatorIntent(valoper_address=key, weight=quo_truncate(weight, total))
        for key, weight in sorted(running.items())
    }


class IntentKeeper:
    """Stateful intent operations against the zone's stores."""

    def __init__(
        self,
        intents: IntentStore,
        zones: ZoneStore,
        balances: BalanceLookup,
    ) -> None:
        self.intents = intents
        self.zones = zones
        self.balances = balances

    def aggregate_intents(self, zone: Zone) -> IntentVector:
        """Recompute the zone's aggregate intent from every live record.

        The zone record is updated in place and persisted only on success.
        """
        try:
            result = aggregate(
                self.intents.iterate_intents(zone, snapshot=False),
                lambda delegator: self.balances.balance(delegator, zone.local_denom),
            )
        except LiquidStakingError as exc:
            logger.error("Aggregation aborted for {}: {}", zone.chain_id, exc)
            raise

        zone.aggregate_intent = result
        self.zones.set_zone(zone)
        logger.info(
            "Aggregated intents for {} across {} validators", zone.chain_id, len(result)
        )
        return result

    def all_ordinalized_intents(self, zone: Zone, snapshot: bool = False) -> list[DelegatorIntent]:
        """Every stored intent ordinalized by its depositor's balance.

        Raises:
            BalanceLookupError: On the first unresolvable depositor (no partial list)
        """
        ordinalized: list[DelegatorIntent] = []
        for record in self.intents.iterate_intents(zone, snapshot):
            balance = self.balances.balance(record.delegator, zone.local_denom)
            ordinalized.append(
                record.model_copy(update={"intents": ordinalize(record.intents, balance)})
            )
        return ordinalized

    def update_intent(
        self,
        sender: str,
        zone: Zone,
        in_amount: Sequence[Coin] = (),
        intents_text: str | None = None,
    ) -> DelegatorIntent | None:
        """Fold a deposit and/or an explicit signal into the sender's intent.

        The sender's existing fractions are valued at their base-denom balance
        scaled by the redemption rate. Returns the persisted record, or None
        when the result is empty and nothing was written.
        """
        intent = self.intents.get_intent(zone, sender, snapshot=False)
        balance = self.balances.balance(sender, zone.base_denom)
        base_balance = mul(zone.redemption_rate, Decimal(balance))

        from_coins = intents_from_coins(in_amount, zone.validator_hrp)
        intent = add_ordinal(intent, base_balance, from_coins)

        if intents_text:
            signalled = parse_intents(intents_text, zone.validator_hrp)
            in_total = sum(coin.amount for coin in in_amount)
            if in_total > 0:
                intent = add_ordinal(intent, base_balance, ordinalize(signalled, in_total))
            else:
                intent = intent.model_copy(update={"intents": signalled})

        if intent.is_empty():
            logger.debug("No intent recorded for {} on {}", sender, zone.chain_id)
            return None

        self.intents.set_intent(zone, intent, snapshot=False)
        logger.info(
            "Updated intent for {} on {}: {} validators",
            sender,
            zone.chain_id,
            len(intent.intents),
        )
        return intent

    def snapshot_intents(self, zone: Zone) -> int:
        """Replace the snapshot namespace with a copy of the live intents."""
        removed = self.intents.clear(zone, snapshot=True)
        copied = 0
        for record in self.intents.all_intents(zone, snapshot=False):
            self.intents.set_intent(zone, record, snapshot=True)
            copied += 1
        logger.info(
            "Snapshot intents for {}: {} copied, {} replaced", zone.chain_id, copied, removed
        )
        return copied
