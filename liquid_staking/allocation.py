"""Allocation planning for new delegations.

The planner splits an integer amount across a zone's target validators so
that holdings move toward the aggregate intent. Validators that sit below
their target absorb new stake first (the unequal split); once every gap is
closed the remainder is spread evenly (the equal split). Shares are computed
in 18-place fixed point and truncated, and whatever truncation leaves over
(the dust) goes to the first validator in ascending address order, so the
plan always sums to the input exactly.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from liquid_staking.errors import EmptyAmountError, NoTargetValidatorsError
from liquid_staking.models import (
    Coin,
    DelegateInstruction,
    IntentVector,
    RedeemTokensForSharesInstruction,
    Zone,
)
from liquid_staking.numeric import add, dec_sum, mul, quo_truncate, sub, truncate_int
from liquid_staking.store import DelegationStore

AllocationPlan = dict[str, int]


@dataclass(slots=True)
class Delta:
    """Target-minus-current gap for one validator (positive means under target)."""

    valoper_address: str
    weight: Decimal


def calculate_deltas(
    current_allocations: Mapping[str, int], current_sum: int, target: IntentVector
) -> list[Delta]:
    """Gap between each target validator's goal and its current holdings.

    Validators without a target entry are not part of the result.
    """
    deltas: list[Delta] = []
    for valoper in sorted(target):
        current = current_allocations.get(valoper, 0)
        goal = truncate_int(mul(target[valoper].weight, Decimal(current_sum)))
        deltas.append(Delta(valoper_address=valoper, weight=Decimal(goal - current)))
    return deltas


def min_delta(deltas: Iterable[Delta]) -> Decimal:
    """Lowest gap in the list."""
    return min(delta.weight for delta in deltas)


def _input_amount(amount: Coin | int) -> int:
    value = amount.amount if isinstance(amount, Coin) else amount
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise EmptyAmountError(f"allocation requires a positive amount, got {amount!r}")
    return value


def determine_allocations_for_delegation(
    current_allocations: Mapping[str, int],
    current_sum: int,
    target: IntentVector,
    amount: Coin | int,
) -> AllocationPlan:
    """Partition amount across the target validators.

    Args:
        current_allocations: Holdings per validator
        current_sum: Total of current holdings
        target: Normalized target weights (the zone aggregate intent)
        amount: Amount to place, as an integer or a single-denom coin

    Returns:
        Non-negative amount per target validator, summing exactly to amount

    Raises:
        EmptyAmountError: If amount is not positive
        NoTargetValidatorsError: If target is empty
    """
    input_amount = _input_amount(amount)
    if not target:
        raise NoTargetValidatorsError("cannot allocate without target validators")

    # Ascending address order; deltas[0] is the dust recipient.
    deltas = calculate_deltas(current_allocations, current_sum, target)

    floor = min_delta(deltas)
    for delta in deltas:
        delta.weight = sub(delta.weight, floor)
    delta_sum = truncate_int(dec_sum(delta.weight for delta in deltas))

    unequal_split = min(delta_sum, input_amount)
    if delta_sum > 0:
        divisor = Decimal(delta_sum)
        for delta in deltas:
            delta.weight = mul(quo_truncate(delta.weight, divisor), Decimal(unequal_split))

    equal_split = input_amount - unequal_split
    if equal_split > 0:
        each = quo_truncate(Decimal(equal_split), Decimal(len(deltas)))
        for delta in deltas:
            delta.weight = add(delta.weight, each)

    plan = {delta.valoper_address: truncate_int(delta.weight) for delta in deltas}
    dust = input_amount - sum(plan.values())
    plan[deltas[0].valoper_address] += dust

    logger.debug(
        "Allocation plan: input={} unequal={} equal={} dust={} validators={}",
        input_amount,
        unequal_split,
        equal_split,
        dust,
        len(plan),
    )
    return plan


class AllocationPlanner:
    """Zone-level planning on top of the persisted delegation records."""

    def __init__(self, delegations: DelegationStore) -> None:
        self.delegations = delegations

    def plan_for_delegation(self, zone: Zone, amount: Coin | int) -> AllocationPlan:
        """Plan amount against the zone's holdings and aggregate intent (or default)."""
        current_allocations, current_sum = self.delegations.delegation_map(zone)
        target = zone.aggregate_intent_or_default()
        plan = determine_allocations_for_delegation(
            current_allocations, current_sum, target, amount
        )
        logger.info(
            "Planned {} for {} across {} validators",
            amount,
            zone.chain_id,
            len(plan),
        )
        return plan

    @staticmethod
    def delegation_instructions(
        zone: Zone, allocations: Mapping[str, int]
    ) -> list[DelegateInstruction]:
        """One delegate instruction per non-zero planned amount, ascending validator order."""
        return [
            DelegateInstruction(
                delegator_address=zone.delegation_address,
                validator_address=valoper,
                amount=Coin(denom=zone.base_denom, amount=allocations[valoper]),
            )
            for valoper in sorted(allocations)
            if allocations[valoper] > 0
        ]

    @staticmethod
    def shares_instructions(
        zone: Zone, coins: Iterable[Coin]
    ) -> list[RedeemTokensForSharesInstruction]:
        """One share-redemption instruction per non-zero coin, sorted by denom."""
        return [
            RedeemTokensForSharesInstruction(delegator_address=zone.delegation_address, amount=coin)
            for coin in sorted(coins, key=lambda coin: coin.denom)
            if not coin.is_zero()
        ]
