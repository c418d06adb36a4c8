"""Utility modules for the Daisy SDK."""

from .validators import (
    ZERO_ADDRESS,
    validate_address,
    validate_private_key,
    to_decimal_string,
    gen_nonce,
    signature_expiration,
)

__all__ = [
    "ZERO_ADDRESS",
    "validate_address",
    "validate_private_key",
    "to_decimal_string",
    "gen_nonce",
    "signature_expiration",
]
