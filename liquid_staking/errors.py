"""Custom exceptions for staking ledger operations."""

from __future__ import annotations


class LiquidStakingError(Exception):
    """Base error for staking ledger failures."""


class InvalidAddressError(LiquidStakingError):
    """Raised when an account or validator identifier is malformed."""


class BalanceLookupError(LiquidStakingError):
    """Raised when a depositor's balance cannot be resolved."""


class DegenerateAggregateError(LiquidStakingError):
    """Raised when a non-empty intent set reduces to zero total weight."""


class EmptyAmountError(LiquidStakingError):
    """Raised when an allocation is requested for a zero or invalid amount."""


class NoTargetValidatorsError(LiquidStakingError):
    """Raised when an allocation is requested against an empty target vector."""


class InvalidIntentError(LiquidStakingError):
    """Raised when a signalled intent string cannot be parsed."""


class CompletionUnderflowError(LiquidStakingError):
    """Raised when an acknowledgement arrives with no outstanding operations."""


class SubmissionError(LiquidStakingError):
    """Raised by message submitters when a batch cannot be submitted."""
