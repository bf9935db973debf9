"""Tests for withdrawal batch completion tracking."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import pytest

from liquid_staking.completion import CompletionTracker, RewardOperation
from liquid_staking.errors import CompletionUnderflowError, SubmissionError
from liquid_staking.models import (
    Coin,
    DecCoin,
    Delegation,
    DelegationDelegatorReward,
    DelegationTotalRewards,
    Instruction,
    WithdrawRewardInstruction,
    Zone,
)
from liquid_staking.store import DelegationStore, ZoneStore

VAL_A = f"cosmosvaloper1{'a' * 38}"
VAL_B = f"cosmosvaloper1{'c' * 38}"
VAL_C = f"cosmosvaloper1{'d' * 38}"


class RecordingSubmitter:
    """Stub submitter that records each submitted batch."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[list[Instruction], str, str]] = []

    def submit_tx(self, instructions: Sequence[Instruction], account: str, memo: str = "") -> None:
        if self.fail:
            raise SubmissionError("relayer unavailable")
        self.calls.append((list(instructions), account, memo))


def _delegation(zone: Zone, validator: str, amount: int = 1000) -> Delegation:
    return Delegation(
        delegation_address=zone.delegation_address,
        validator_address=validator,
        amount=Coin(denom=zone.base_denom, amount=amount),
    )


def _reward(amount: str) -> list[DecCoin]:
    return [DecCoin(denom="uatom", amount=Decimal(amount))]


def test_dispatch_counts_only_qualifying_operations(zone: Zone, zone_store: ZoneStore) -> None:
    submitter = RecordingSubmitter()
    tracker = CompletionTracker(zone_store, submitter)
    operations = [
        RewardOperation(delegation=_delegation(zone, VAL_A), reward=_reward("12.5")),
        RewardOperation(delegation=_delegation(zone, VAL_B), reward=_reward("0")),
        RewardOperation(delegation=_delegation(zone, VAL_C), reward=_reward("3")),
    ]

    outstanding = tracker.dispatch_batch(zone, operations, memo="rewards")

    assert outstanding == 2
    assert zone.withdrawal_waitgroup == 2
    stored = zone_store.get_zone(zone.chain_id)
    assert stored is not None and stored.withdrawal_waitgroup == 2

    assert len(submitter.calls) == 1
    instructions, account, memo = submitter.calls[0]
    assert account == zone.delegation_address
    assert memo == "rewards"
    assert instructions == [
        WithdrawRewardInstruction(delegator_address=zone.delegation_address, validator_address=VAL_A),
        WithdrawRewardInstruction(delegator_address=zone.delegation_address, validator_address=VAL_C),
    ]


def test_dispatch_without_qualifying_operations_still_persists(
    zone: Zone, zone_store: ZoneStore
) -> None:
    submitter = RecordingSubmitter()
    tracker = CompletionTracker(zone_store, submitter)
    zone.withdrawal_waitgroup = 1

    outstanding = tracker.dispatch_batch(
        zone, [RewardOperation(delegation=_delegation(zone, VAL_A))]
    )

    assert outstanding == 1
    assert submitter.calls == []
    stored = zone_store.get_zone(zone.chain_id)
    assert stored is not None and stored.withdrawal_waitgroup == 1


def test_submission_failure_propagates(zone: Zone, zone_store: ZoneStore) -> None:
    tracker = CompletionTracker(zone_store, RecordingSubmitter(fail=True))

    with pytest.raises(SubmissionError):
        tracker.dispatch_batch(
            zone, [RewardOperation(delegation=_delegation(zone, VAL_A), reward=_reward("1"))]
        )

    assert zone.withdrawal_waitgroup == 0
    stored = zone_store.get_zone(zone.chain_id)
    assert stored is not None and stored.withdrawal_waitgroup == 0


def test_submission_failure_keeps_earlier_outstanding_count(
    zone: Zone, zone_store: ZoneStore
) -> None:
    zone.withdrawal_waitgroup = 3
    tracker = CompletionTracker(zone_store, RecordingSubmitter(fail=True))

    with pytest.raises(SubmissionError):
        tracker.dispatch_batch(
            zone,
            [
                RewardOperation(delegation=_delegation(zone, VAL_A), reward=_reward("1")),
                RewardOperation(delegation=_delegation(zone, VAL_B), reward=_reward("2")),
            ],
        )

    assert zone.withdrawal_waitgroup == 3
    stored = zone_store.get_zone(zone.chain_id)
    assert stored is not None and stored.withdrawal_waitgroup == 3


def test_dispatch_uses_default_memo(zone: Zone, zone_store: ZoneStore) -> None:
    submitter = RecordingSubmitter()
    tracker = CompletionTracker(zone_store, submitter, default_memo="auto-withdraw")
    operation = RewardOperation(delegation=_delegation(zone, VAL_A), reward=_reward("1"))

    tracker.dispatch_batch(zone, [operation])
    tracker.dispatch_batch(zone, [operation], memo="")

    assert [memo for _, _, memo in submitter.calls] == ["auto-withdraw", ""]


def test_acknowledge_counts_down_and_signals_completion(
    zone: Zone, zone_store: ZoneStore
) -> None:
    tracker = CompletionTracker(zone_store, RecordingSubmitter())
    completed: list[str] = []
    tracker.on_complete(lambda z: completed.append(z.chain_id))
    tracker.dispatch_batch(
        zone,
        [
            RewardOperation(delegation=_delegation(zone, VAL_A), reward=_reward("1")),
            RewardOperation(delegation=_delegation(zone, VAL_B), reward=_reward("1")),
        ],
    )

    assert tracker.acknowledge(zone) == 1
    assert completed == []
    assert not CompletionTracker.is_complete(zone)

    assert tracker.acknowledge(zone) == 0
    assert completed == [zone.chain_id]
    assert CompletionTracker.is_complete(zone)
    stored = zone_store.get_zone(zone.chain_id)
    assert stored is not None and stored.withdrawal_waitgroup == 0


def test_acknowledge_without_outstanding_raises(zone: Zone, zone_store: ZoneStore) -> None:
    tracker = CompletionTracker(zone_store, RecordingSubmitter())

    with pytest.raises(CompletionUnderflowError):
        tracker.acknowledge(zone)
    assert zone.withdrawal_waitgroup == 0


def test_withdraw_rewards_for_response(
    zone: Zone, zone_store: ZoneStore, delegation_store: DelegationStore
) -> None:
    for validator in (VAL_A, VAL_B, VAL_C):
        delegation_store.set_delegation(zone, _delegation(zone, validator))
    rewards = DelegationTotalRewards(
        rewards=[
            DelegationDelegatorReward(validator_address=VAL_A, reward=_reward("5.25")),
            DelegationDelegatorReward(validator_address=VAL_C, reward=[]),
        ],
        total=_reward("5.25"),
    )
    submitter = RecordingSubmitter()
    tracker = CompletionTracker(zone_store, submitter, delegation_store)

    outstanding = tracker.withdraw_rewards_for_response(zone, zone.delegation_address, rewards)

    assert outstanding == 1
    instructions, _, _ = submitter.calls[0]
    assert [i.validator_address for i in instructions] == [VAL_A]


def test_withdraw_rewards_requires_delegation_store(zone: Zone, zone_store: ZoneStore) -> None:
    tracker = CompletionTracker(zone_store, RecordingSubmitter())

    with pytest.raises(RuntimeError):
        tracker.withdraw_rewards_for_response(zone, zone.delegation_address, DelegationTotalRewards())
