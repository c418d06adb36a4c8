"""
Input validation utilities.

Validates addresses, keys and amounts before any request is made, plus the
nonce/expiration helpers used when building agreements.
"""

import re
import secrets
import time
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from eth_utils import to_checksum_address

from ..exceptions import ValidationError


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEFAULT_NONCE_LENGTH = 32
SIGNATURE_TTL_SECONDS = 10 * 60


def validate_address(address: str) -> str:
    """
    Validate Ethereum address.

    Args:
        address: Ethereum address

    Returns:
        Checksummed address

    Raises:
        ValidationError: If address is invalid
    """
    if not isinstance(address, str):
        raise ValidationError(f"Address must be string, got {type(address)}")

    addr = address[2:] if address.startswith("0x") else address

    # 20 bytes = 40 hex chars
    if not re.match(r"^[0-9a-fA-F]{40}$", addr):
        raise ValidationError(f"Invalid Ethereum address: {address}")

    return to_checksum_address(f"0x{addr}")


def validate_private_key(private_key: Union[str, bytes]) -> str:
    """
    Validate private key format.

    Args:
        private_key: Private key hex string or 32 raw bytes

    Returns:
        Normalized private key (0x-prefixed lowercase hex)

    Raises:
        ValidationError: If private key is invalid
    """
    if isinstance(private_key, (bytes, bytearray)):
        if len(private_key) != 32:
            raise ValidationError("Invalid private key length")
        return "0x" + bytes(private_key).hex()

    if not isinstance(private_key, str):
        raise ValidationError(f"Private key must be string or bytes, got {type(private_key)}")

    key = private_key[2:] if private_key.startswith("0x") else private_key

    # 32 bytes = 64 hex chars
    if not re.match(r"^[0-9a-fA-F]{64}$", key):
        raise ValidationError("Invalid private key format")

    return f"0x{key.lower()}"


def to_decimal_string(value: Any, field: str = "amount") -> str:
    """
    Coerce a numeric amount into an arbitrary-precision decimal string.

    Floats go through `str` first so 0.1 stays "0.1".

    Args:
        value: int, Decimal, float or numeric string
        field: Field name used in error messages

    Returns:
        Decimal string without exponent

    Raises:
        ValidationError: If value is missing, not numeric or negative
    """
    if value is None:
        raise ValidationError(f"Missing `{field}`")
    if isinstance(value, bool):
        raise ValidationError(f"`{field}` must be numeric, got bool")

    try:
        if isinstance(value, Decimal):
            dec = value
        elif isinstance(value, (int, float)):
            dec = Decimal(str(value))
        elif isinstance(value, str):
            dec = Decimal(value.strip())
        else:
            raise ValidationError(f"`{field}` must be numeric, got {type(value)}")
    except InvalidOperation as e:
        raise ValidationError(f"Invalid `{field}` format: {value}") from e

    if not dec.is_finite():
        raise ValidationError(f"`{field}` must be finite, got {value}")
    if dec < 0:
        raise ValidationError(f"`{field}` must be >= 0, got {value}")

    return format(dec.normalize(), "f") if dec != dec.to_integral_value() else str(int(dec))


def gen_nonce(length: int = DEFAULT_NONCE_LENGTH) -> str:
    """
    Generate a random hex nonce.

    Args:
        length: Nonce length in bytes

    Returns:
        0x-prefixed hex string of exactly `2 * length + 2` characters
    """
    if length < 1:
        raise ValidationError(f"Nonce length must be positive, got {length}")

    value = ""
    while len(value) != length * 2 + 2:  # +2 because of "0x"
        value = "0x" + secrets.token_hex(length)
    return value


def signature_expiration(
    expires_at: Optional[Union[datetime, int, float]] = None,
    ttl_seconds: int = SIGNATURE_TTL_SECONDS
) -> str:
    """
    Unix timestamp (seconds, as string) when an agreement signature expires.

    Args:
        expires_at: Explicit expiration (datetime or unix seconds)
        ttl_seconds: Lifetime from now when `expires_at` is not given

    Returns:
        Unix timestamp in seconds as string
    """
    if expires_at is None:
        return str(int(time.time()) + ttl_seconds)
    if isinstance(expires_at, datetime):
        return str(int(expires_at.timestamp()))
    if isinstance(expires_at, (int, float)) and not isinstance(expires_at, bool):
        return str(int(expires_at))
    raise ValidationError(f"Expiration must be datetime or unix seconds, got {type(expires_at)}")
