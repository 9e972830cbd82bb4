"""Validation utilities for Solana Insider.

This module provides utilities for validating Solana-specific data.
"""

import re
from typing import Any

from solders.pubkey import Pubkey

from solana_insider.utils.errors import InvalidPublicKeyError

# Solana public key validation pattern (base58 format)
PUBKEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def validate_public_key(pubkey: Any) -> bool:
    """Validate a Solana public key.

    Args:
        pubkey: The public key to validate

    Returns:
        True if the public key is valid, False otherwise
    """
    if not pubkey or not isinstance(pubkey, str):
        return False
    if not PUBKEY_PATTERN.match(pubkey):
        return False
    try:
        Pubkey.from_string(pubkey)
    except ValueError:
        return False
    return True


def validate_solana_address(address: Any) -> str:
    """Validate a Solana address and raise an exception if invalid.

    Args:
        address: The address to validate

    Returns:
        The address, stripped of surrounding whitespace

    Raises:
        InvalidPublicKeyError: If the address is invalid
    """
    if isinstance(address, str):
        address = address.strip()
    if not validate_public_key(address):
        raise InvalidPublicKeyError(address)
    return address
