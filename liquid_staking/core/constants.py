"""Common constants shared across the staking ledger."""

from __future__ import annotations

from pathlib import Path

# Fixed-point scale used for every intent weight and allocation share.
DECIMAL_PRECISION = 18
# Working precision for intermediate products before truncation.
DECIMAL_WORKING_DIGITS = 80

KEY_PREFIX_ZONE = b"\x01"
KEY_PREFIX_INTENT = b"\x02"
KEY_PREFIX_SNAPSHOT_INTENT = b"\x03"
KEY_PREFIX_DELEGATION = b"\x04"

MAX_KEY_SEGMENT_LENGTH = 255
VALIDATOR_PREFIX_SUFFIX = "valoper"

DEFAULT_ACCOUNT_HRP = "quick"
DEFAULT_STATE_FILE = Path("data/staking_state.json")
