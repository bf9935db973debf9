"""Structural checks for bech32-style account and validator identifiers.

Full checksum decoding belongs to the chain client; the ledger only rejects
identifiers that cannot possibly be valid so bad keys never reach storage.
"""

from __future__ import annotations

from liquid_staking.errors import InvalidAddressError

BECH32_CHARSET = frozenset("qpzry9x8gf2tvdw0s3jn54khce6mua7l")
CHECKSUM_LENGTH = 6
MAX_ADDRESS_LENGTH = 90


def split_address(address: str) -> tuple[str, str]:
    """Split an address into its human readable prefix and data part.

    Raises:
        InvalidAddressError: If the address is structurally malformed
    """
    if not address or not address.strip():
        raise InvalidAddressError("empty address string is not allowed")
    if len(address) > MAX_ADDRESS_LENGTH:
        raise InvalidAddressError(f"address too long: {len(address)} characters")
    if address.lower() != address and address.upper() != address:
        raise InvalidAddressError(f"mixed case address: {address}")

    normalized = address.lower()
    separator = normalized.rfind("1")
    if separator < 1:
        raise InvalidAddressError(f"missing separator in address: {address}")

    hrp, data = normalized[:separator], normalized[separator + 1 :]
    if len(data) < CHECKSUM_LENGTH:
        raise InvalidAddressError(f"address data too short: {address}")
    if any(char not in BECH32_CHARSET for char in data):
        raise InvalidAddressError(f"invalid character in address: {address}")
    return hrp, data


def validate_address(address: str, hrp: str | None = None) -> str:
    """Validate address structure and, optionally, its prefix.

    Args:
        address: Identifier to check
        hrp: Expected human readable prefix (skipped when None)

    Returns:
        The address, unchanged

    Raises:
        InvalidAddressError: If the address is malformed or has the wrong prefix
    """
    prefix, _ = split_address(address)
    if hrp and prefix != hrp:
        raise InvalidAddressError(f"unexpected hrp - got {prefix} expected {hrp}")
    return address


def is_valid_address(address: str, hrp: str | None = None) -> bool:
    """Non-raising variant of validate_address for filtering."""
    try:
        validate_address(address, hrp)
    except InvalidAddressError:
        return False
    return True
