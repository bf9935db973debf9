"""Liquid staking ledger - intent aggregation, allocation planning and batch tracking."""

__version__ = "0.1.0"

from liquid_staking.allocation import (
    AllocationPlan,
    AllocationPlanner,
    determine_allocations_for_delegation,
)
from liquid_staking.completion import CompletionTracker, MessageSubmitter, RewardOperation
from liquid_staking.core.config import StakingConfig, load_config
from liquid_staking.errors import (
    BalanceLookupError,
    CompletionUnderflowError,
    DegenerateAggregateError,
    EmptyAmountError,
    InvalidAddressError,
    InvalidIntentError,
    LiquidStakingError,
    NoTargetValidatorsError,
    SubmissionError,
)
from liquid_staking.intents import (
    IntentKeeper,
    aggregate,
    merge_intents,
    normalize,
    ordinalize,
    parse_intents,
)
from liquid_staking.models import (
    Coin,
    DelegateInstruction,
    Delegation,
    DelegatorIntent,
    RedeemTokensForSharesInstruction,
    ValidatorIntent,
    WithdrawRewardInstruction,
    Zone,
)
from liquid_staking.store import (
    DelegationStore,
    IntentStore,
    KVStore,
    MemoryKVStore,
    StaticBalances,
    ZoneStore,
)

__all__ = [
    "AllocationPlan",
    "AllocationPlanner",
    "determine_allocations_for_delegation",
    "CompletionTracker",
    "MessageSubmitter",
    "RewardOperation",
    "StakingConfig",
    "load_config",
    "LiquidStakingError",
    "InvalidAddressError",
    "BalanceLookupError",
    "DegenerateAggregateError",
    "EmptyAmountError",
    "NoTargetValidatorsError",
    "InvalidIntentError",
    "CompletionUnderflowError",
    "SubmissionError",
    "IntentKeeper",
    "aggregate",
    "merge_intents",
    "normalize",
    "ordinalize",
    "parse_intents",
    "Coin",
    "DelegateInstruction",
    "Delegation",
    "DelegatorIntent",
    "RedeemTokensForSharesInstruction",
    "ValidatorIntent",
    "WithdrawRewardInstruction",
    "Zone",
    "DelegationStore",
    "IntentStore",
    "KVStore",
    "MemoryKVStore",
    "StaticBalances",
    "ZoneStore",
]
