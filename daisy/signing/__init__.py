"""EIP-712 encoding and signing for the Daisy SDK."""

from .typed_data import (
    TypedData,
    TypedField,
    encode,
    encode_type,
    encode_data,
    type_hash,
    hash_struct,
    make_domain,
)
from .signer import Signer, SignerKind, LocalSigner, RemoteSigner, recover_signer
from .schema import SUBSCRIPTION_TYPES, SUBSCRIPTION, CANCEL_SUBSCRIPTION

__all__ = [
    "TypedData",
    "TypedField",
    "encode",
    "encode_type",
    "encode_data",
    "type_hash",
    "hash_struct",
    "make_domain",
    "Signer",
    "SignerKind",
    "LocalSigner",
    "RemoteSigner",
    "recover_signer",
    "SUBSCRIPTION_TYPES",
    "SUBSCRIPTION",
    "CANCEL_SUBSCRIPTION",
]
