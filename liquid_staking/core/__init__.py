"""Core infrastructure modules for the staking ledger."""

from .config import StakingConfig, load_config
from .constants import (
    DECIMAL_PRECISION,
    DEFAULT_ACCOUNT_HRP,
    DEFAULT_STATE_FILE,
    KEY_PREFIX_DELEGATION,
    KEY_PREFIX_INTENT,
    KEY_PREFIX_SNAPSHOT_INTENT,
    KEY_PREFIX_ZONE,
)

__all__ = [
    "StakingConfig",
    "load_config",
    "DECIMAL_PRECISION",
    "DEFAULT_ACCOUNT_HRP",
    "DEFAULT_STATE_FILE",
    "KEY_PREFIX_ZONE",
    "KEY_PREFIX_INTENT",
    "KEY_PREFIX_SNAPSHOT_INTENT",
    "KEY_PREFIX_DELEGATION",
]
