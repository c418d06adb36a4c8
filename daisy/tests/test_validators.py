"""Tests for validators and agreement helpers."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from daisy.exceptions import ValidationError
from daisy.utils.validators import (
    gen_nonce,
    signature_expiration,
    to_decimal_string,
    validate_address,
    validate_private_key,
)


def test_validate_address():
    """Test address validation and checksumming."""
    assert validate_address("0x5fbdb2315678afecb367f032d93f642f64180aa3") == (
        "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    )
    assert validate_address("5fbdb2315678afecb367f032d93f642f64180aa3").startswith("0x5FbDB")

    with pytest.raises(ValidationError):
        validate_address("0x1234")  # Too short

    with pytest.raises(ValidationError):
        validate_address(12345)  # Not a string


def test_validate_private_key():
    """Test private key normalization."""
    key = "AB" * 32
    assert validate_private_key(key) == "0x" + "ab" * 32
    assert validate_private_key(bytes.fromhex("ab" * 32)) == "0x" + "ab" * 32

    with pytest.raises(ValidationError):
        validate_private_key("0x" + "zz" * 32)

    with pytest.raises(ValidationError):
        validate_private_key(b"\x00" * 16)


@pytest.mark.parametrize("value,expected", [
    (0, "0"),
    (10**24, "1000000000000000000000000"),
    ("1.10", "1.1"),
    (" 42 ", "42"),
    (Decimal("1E+3"), "1000"),
    (0.3, "0.3"),
])
def test_to_decimal_string(value, expected):
    assert to_decimal_string(value) == expected


@pytest.mark.parametrize("value", [None, True, "1e", "-5", "Infinity", [1], object()])
def test_to_decimal_string_rejects(value):
    with pytest.raises(ValidationError):
        to_decimal_string(value, field="price")


@pytest.mark.parametrize("length", [1, 4, 16, 32, 64])
def test_gen_nonce_length(length):
    for _ in range(20):
        nonce = gen_nonce(length)
        assert len(nonce) == 2 * length + 2
        assert nonce.startswith("0x")
        int(nonce, 16)


def test_gen_nonce_default_is_32_bytes():
    assert len(gen_nonce()) == 66
    assert gen_nonce() != gen_nonce()


def test_gen_nonce_regenerates_short_values():
    values = iter(["abcd", "00" * 32])
    with patch("daisy.utils.validators.secrets.token_hex", side_effect=lambda n: next(values)):
        assert gen_nonce() == "0x" + "00" * 32


def test_gen_nonce_invalid_length():
    with pytest.raises(ValidationError):
        gen_nonce(0)


def test_signature_expiration():
    """Expiration is unix seconds as a string."""
    with patch("daisy.utils.validators.time.time", return_value=1000.9):
        assert signature_expiration() == "1600"
        assert signature_expiration(ttl_seconds=60) == "1060"

    assert signature_expiration(1700000000.7) == "1700000000"
    assert signature_expiration(datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)) == "1700000000"

    with pytest.raises(ValidationError):
        signature_expiration("tomorrow")
