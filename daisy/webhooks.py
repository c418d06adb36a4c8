"""
Webhook signature verification.

Daisy signs the canonical JSON form of each webhook payload (keys sorted
recursively, compact separators) with its RSA key and sends the base64
signature alongside. Verify with the public key from the dashboard.
"""

import base64
import binascii
from collections.abc import Mapping
from typing import Any, Union
import logging

import orjson
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import load_pem_public_key

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "RSA-SHA256"

_HASHES = {
    "RSA-SHA256": hashes.SHA256,
    "RSA-SHA384": hashes.SHA384,
    "RSA-SHA512": hashes.SHA512,
}


def canonicalize(message: Union[str, bytes, Mapping, list]) -> bytes:
    """
    Deterministic serialization of a webhook payload.

    Strings are used as-is; mappings and lists are JSON with keys sorted at
    every level.
    """
    if isinstance(message, bytes):
        return message
    if isinstance(message, str):
        return message.encode("utf-8")
    return orjson.dumps(message, option=orjson.OPT_SORT_KEYS)


def verify(
    message: Union[str, bytes, Mapping, list],
    digest: str,
    public_key: Union[str, bytes],
    algorithm: str = DEFAULT_ALGORITHM
) -> bool:
    """
    Verify a webhook signature.

    Args:
        message: Webhook body (parsed JSON or raw string)
        digest: Base64 signature from the webhook headers
        public_key: PEM-encoded RSA public key
        algorithm: RSA-SHA256, RSA-SHA384 or RSA-SHA512

    Returns:
        True if the signature matches

    Raises:
        ValidationError: If the algorithm is unsupported or the key is not an RSA PEM key
    """
    hash_cls = _HASHES.get((algorithm or DEFAULT_ALGORITHM).upper())
    if hash_cls is None:
        raise ValidationError(f"Unsupported webhook algorithm: {algorithm}")

    pem = public_key.encode("utf-8") if isinstance(public_key, str) else public_key
    try:
        key = load_pem_public_key(pem)
    except ValueError as e:
        raise ValidationError(f"Invalid webhook public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise ValidationError("Webhook public key must be an RSA key")

    try:
        signature = base64.b64decode(digest, validate=True)
    except (binascii.Error, ValueError, TypeError):
        logger.debug("Webhook digest is not valid base64")
        return False

    try:
        key.verify(signature, canonicalize(message), padding.PKCS1v15(), hash_cls())
    except InvalidSignature:
        logger.warning("Webhook signature mismatch")
        return False
    return True
