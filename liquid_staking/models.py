"""Staking ledger models using Pydantic v2."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from liquid_staking.core.constants import VALIDATOR_PREFIX_SUFFIX
from liquid_staking.numeric import ONE, ZERO, mul, quo_truncate, to_decimal, truncate_int


class Coin(BaseModel):
    """Integer amount of a single denomination."""

    denom: str = Field(..., description="Token denomination")
    amount: Annotated[int, Field(ge=0, description="Amount in indivisible units")] = 0

    model_config = ConfigDict(frozen=True)

    @field_validator("denom")
    @classmethod
    def validate_denom(cls, v: str) -> str:
        """Ensure denom is non-empty."""
        if not v or not v.strip():
            raise ValueError("Denom cannot be empty")
        return v.strip()

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


class DecCoin(BaseModel):
    """Decimal amount of a single denomination (reward accounting)."""

    denom: str
    amount: Annotated[Decimal, Field(ge=0)] = ZERO

    model_config = ConfigDict(frozen=True)

    def is_zero(self) -> bool:
        return self.amount.is_zero()


class ValidatorIntent(BaseModel):
    """Weight assigned to a single validator."""

    valoper_address: str = Field(..., description="Validator operator address")
    weight: Annotated[Decimal, Field(ge=0, description="Non-negative weight")] = ZERO

    model_config = ConfigDict(frozen=True)

    @field_validator("weight", mode="before")
    @classmethod
    def coerce_weight(cls, v: object) -> object:
        """Accept ints, strings and floats without binary float artifacts."""
        if isinstance(v, (int, float, str)) and not isinstance(v, bool):
            return to_decimal(v)
        return v


IntentVector = dict[str, ValidatorIntent]


class DelegatorIntent(BaseModel):
    """A depositor's intent vector, keyed by validator address."""

    delegator: str = Field(..., description="Depositor account address")
    intents: IntentVector = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.intents


class BondStatus(str, Enum):
    """Remote validator bond status."""

    BONDED = "BOND_STATUS_BONDED"
    UNBONDING = "BOND_STATUS_UNBONDING"
    UNBONDED = "BOND_STATUS_UNBONDED"


class Validator(BaseModel):
    """Remote validator as tracked by the zone."""

    valoper_address: str
    commission_rate: Decimal = Field(default=ZERO)
    delegator_shares: Decimal = Field(default=ZERO)
    voting_power: int = Field(default=0, ge=0)
    status: BondStatus = Field(default=BondStatus.BONDED)

    def shares_to_tokens(self, shares: Decimal) -> int:
        """Convert delegator shares to tokens at the validator's current exchange rate."""
        if self.delegator_shares.is_zero():
            return 0
        rate = quo_truncate(Decimal(self.voting_power), self.delegator_shares)
        return truncate_int(mul(shares, rate))


class Delegation(BaseModel):
    """A delegation held by one of the zone's delegation accounts."""

    delegation_address: str
    validator_address: str
    amount: Coin
    height: int = Field(default=0, ge=0)
    redelegation_end: int = Field(default=0, ge=0)


class Zone(BaseModel):
    """Remote chain scope under which delegations and intents are tracked.

    The zone is the explicit mutable record that the aggregator rewrites and
    the completion tracker counts against.
    """

    chain_id: str = Field(..., description="Remote chain identifier")
    connection_id: str = Field(default="", description="Connection to the remote chain")
    account_prefix: str = Field(default="cosmos", description="Remote chain account hrp")
    local_denom: str = Field(..., description="Liquid token denomination on the local chain")
    base_denom: str = Field(..., description="Staking denomination on the remote chain")
    redemption_rate: Decimal = Field(default=ONE, ge=0)
    delegation_address: str = Field(default="", description="Remote delegation account")
    validators: list[Validator] = Field(default_factory=list)
    aggregate_intent: IntentVector = Field(default_factory=dict)
    withdrawal_waitgroup: int = Field(default=0, ge=0)

    @field_validator("chain_id")
    @classmethod
    def validate_chain_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("chain_id cannot be empty")
        return v.strip()

    @property
    def validator_hrp(self) -> str:
        return f"{self.account_prefix}{VALIDATOR_PREFIX_SUFFIX}"

    def validator_addresses(self) -> list[str]:
        return sorted(validator.valoper_address for validator in self.validators)

    def aggregate_intent_or_default(self) -> IntentVector:
        """Return the aggregate intent, or an equal weighting over the zone's validators."""
        if self.aggregate_intent:
            return dict(self.aggregate_intent)

        addresses = self.validator_addresses()
        if not addresses:
            return {}
        weight = quo_truncate(ONE, Decimal(len(addresses)))
        return {
            address: ValidatorIntent(valoper_address=address, weight=weight)
            for address in addresses
        }


class DelegationDelegatorReward(BaseModel):
    """Outstanding reward for a single validator."""

    validator_address: str
    reward: list[DecCoin] = Field(default_factory=list)


class DelegationTotalRewards(BaseModel):
    """Decoded response of a delegator total-rewards query."""

    rewards: list[DelegationDelegatorReward] = Field(default_factory=list)
    total: list[DecCoin] = Field(default_factory=list)

    def reward_for(self, validator_address: str) -> list[DecCoin]:
        for reward in self.rewards:
            if reward.validator_address == validator_address:
                return list(reward.reward)
        return []


class DelegateInstruction(BaseModel):
    """Outbound instruction to delegate tokens to a validator."""

    delegator_address: str
    validator_address: str
    amount: Coin

    model_config = ConfigDict(frozen=True)


class RedeemTokensForSharesInstruction(BaseModel):
    """Outbound instruction to convert liquid staking tokens into delegation shares."""

    delegator_address: str
    amount: Coin

    model_config = ConfigDict(frozen=True)


class WithdrawRewardInstruction(BaseModel):
    """Outbound instruction to withdraw rewards for one delegation."""

    delegator_address: str
    validator_address: str

    model_config = ConfigDict(frozen=True)


Instruction = DelegateInstruction | RedeemTokensForSharesInstruction | WithdrawRewardInstruction
