"""Outstanding-operation tracking for batches of asynchronous instructions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from liquid_staking.errors import CompletionUnderflowError
from liquid_staking.models import (
    DecCoin,
    Delegation,
    DelegationTotalRewards,
    Instruction,
    WithdrawRewardInstruction,
    Zone,
)
from liquid_staking.store import DelegationStore, ZoneStore

CompletionCallback = Callable[[Zone], None]


class MessageSubmitter(Protocol):
    """Submits outbound instructions on behalf of a remote account."""

    def submit_tx(self, instructions: Sequence[Instruction], account: str, memo: str = "") -> None:
        """Submit instructions; raises SubmissionError if submission fails."""


@dataclass(slots=True)
class RewardOperation:
    """A delegation paired with the reward it has accrued."""

    delegation: Delegation
    reward: list[DecCoin] = field(default_factory=list)

    @property
    def qualifies(self) -> bool:
        return any(not coin.is_zero() for coin in self.reward)


class CompletionTracker:
    """Counts outstanding withdrawals per zone until every acknowledgement arrives.

    The counter lives on the zone (``withdrawal_waitgroup``). There is no
    timeout: a lost acknowledgement leaves the counter above zero.
    """

    def __init__(
        self,
        zones: ZoneStore,
        submitter: MessageSubmitter,
        delegations: DelegationStore | None = None,
        default_memo: str = "",
    ) -> None:
        self.zones = zones
        self.submitter = submitter
        self.delegations = delegations
        self.default_memo = default_memo
        self._callbacks: list[CompletionCallback] = []

    def on_complete(self, callback: CompletionCallback) -> None:
        """Register a callback fired when a zone's counter returns to zero."""
        self._callbacks.append(callback)

    def dispatch_batch(
        self, zone: Zone, operations: Iterable[RewardOperation], memo: str | None = None
    ) -> int:
        """Emit one withdrawal per qualifying operation and count them.

        The zone is persisted even when nothing qualifies so pending mutations
        are flushed. If submission fails the previous count is restored and
        persisted before the error propagates. Without an explicit memo the
        tracker's default_memo is used.

        Returns:
            The zone's outstanding count after dispatch
        """
        instructions = [
            WithdrawRewardInstruction(
                delegator_address=operation.delegation.delegation_address,
                validator_address=operation.delegation.validator_address,
            )
            for operation in operations
            if operation.qualifies
        ]

        if not instructions:
            self.zones.set_zone(zone)
            logger.debug("No qualifying withdrawals for {}", zone.chain_id)
            return zone.withdrawal_waitgroup

        previous = zone.withdrawal_waitgroup
        zone.withdrawal_waitgroup += len(instructions)
        self.zones.set_zone(zone)
        logger.info(
            "Dispatching {} withdrawals for {} (outstanding={})",
            len(instructions),
            zone.chain_id,
            zone.withdrawal_waitgroup,
        )
        try:
            self.submitter.submit_tx(
                instructions,
                zone.delegation_address,
                self.default_memo if memo is None else memo,
            )
        except Exception:
            zone.withdrawal_waitgroup = previous
            self.zones.set_zone(zone)
            logger.error(
                "Submission failed for {}; outstanding count restored to {}",
                zone.chain_id,
                previous,
            )
            raise
        return zone.withdrawal_waitgroup

    def withdraw_rewards_for_response(
        self, zone: Zone, delegator: str, rewards: DelegationTotalRewards
    ) -> int:
        """Dispatch withdrawals for each of delegator's delegations with accrued rewards."""
        if self.delegations is None:
            raise RuntimeError("CompletionTracker requires a DelegationStore for reward batches")

        operations = []
        for delegation in self.delegations.delegator_delegations(zone, delegator):
            reward = rewards.reward_for(delegation.validator_address)
            logger.debug(
                "Withdraw rewards: delegator={} validator={} amount={}",
                delegation.delegation_address,
                delegation.validator_address,
                reward,
            )
            operations.append(RewardOperation(delegation=delegation, reward=reward))
        return self.dispatch_batch(zone, operations)

    def acknowledge(self, zone: Zone) -> int:
        """Record one acknowledgement.

        Returns:
            The zone's outstanding count after the decrement

        Raises:
            CompletionUnderflowError: If nothing is outstanding
        """
        if zone.withdrawal_waitgroup <= 0:
            raise CompletionUnderflowError(
                f"acknowledgement received for {zone.chain_id} with no outstanding operations"
            )

        zone.withdrawal_waitgroup -= 1
        self.zones.set_zone(zone)
        logger.debug(
            "Acknowledged withdrawal for {} (outstanding={})",
            zone.chain_id,
            zone.withdrawal_waitgroup,
        )

        if zone.withdrawal_waitgroup == 0:
            logger.info("All withdrawals acknowledged for {}", zone.chain_id)
            for callback in self._callbacks:
                callback(zone)
        return zone.withdrawal_waitgroup

    @staticmethod
    def is_complete(zone: Zone) -> bool:
        return zone.withdrawal_waitgroup == 0
