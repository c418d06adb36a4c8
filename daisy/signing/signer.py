"""
EIP-712 signers.

Two backends behind one interface:

- LocalSigner: holds a private key, signs in-process (server-side
  authorization signatures for private plans).
- RemoteSigner: delegates to a wallet provider over JSON-RPC
  (end-user flow, e.g. MetaMask behind a web3 provider).
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Union
import logging

import orjson
from eth_account import Account
from eth_utils import to_hex

from .schema import SUBSCRIPTION_TYPES
from .typed_data import TypedData, TypeSchema
from ..config import DaisySettings, get_settings
from ..exceptions import SignerRejectedError, ValidationError
from ..utils.validators import validate_address, validate_private_key

logger = logging.getLogger(__name__)


class SignerKind(str, Enum):
    """Signer backend."""
    LOCAL = "local"
    REMOTE = "remote"


class Signer(ABC):
    """Produces EIP-712 signatures over typed data."""

    kind: SignerKind

    @abstractmethod
    async def sign(self, typed_data: TypedData, account: Optional[str] = None) -> str:
        """
        Sign typed data.

        Args:
            typed_data: Envelope to sign
            account: Signing account (required by remote signers)

        Returns:
            0x-prefixed hex signature
        """


class LocalSigner(Signer):
    """
    Signs typed data with a raw private key. No I/O.

    The domain is scoped to a single verifying contract (the subscription
    manager), so signatures cannot be replayed on another manager.
    """

    kind = SignerKind.LOCAL

    def __init__(
        self,
        private_key: Union[str, bytes],
        verifying_contract: str,
        types: TypeSchema = SUBSCRIPTION_TYPES
    ):
        """
        Initialize local signer.

        Args:
            private_key: 0x hex string or 32 raw bytes
            verifying_contract: Subscription manager contract address
            types: Type schema used by `sign_typed_data`

        Raises:
            ValidationError: If the key or contract address is invalid
        """
        if not verifying_contract:
            raise ValidationError("Missing `verifying_contract` for local signer")

        self._private_key = validate_private_key(private_key)
        self._account = Account.from_key(self._private_key)
        self.types = types
        self.domain = {"verifyingContract": validate_address(verifying_contract)}

    @property
    def address(self) -> str:
        """Checksummed address of the key."""
        return self._account.address

    def typed_data(self, primary_type: str, message: Mapping) -> TypedData:
        return TypedData(self.types, self.domain, primary_type, message)

    def sign_envelope(self, typed_data: TypedData) -> str:
        """Sign an already-built envelope (structured eth_signTypedData scheme)."""
        signed = self._account.sign_message(typed_data.signable_message())
        logger.debug(f"Signed {typed_data.primary_type} with {self.address}")
        return to_hex(signed.signature)

    def sign_typed_data(self, primary_type: str, message: Mapping) -> str:
        """
        Sign `message` as `primary_type` under this signer's schema and domain.

        Args:
            primary_type: Struct name, e.g. "Subscription"
            message: Field values

        Returns:
            0x-prefixed 65-byte signature

        Raises:
            UnknownTypeError: If `primary_type` is not in the schema
            FieldMismatchError: If `message` does not match the struct
        """
        return self.sign_envelope(self.typed_data(primary_type, message))

    def hash(self, primary_type: str, message: Mapping) -> str:
        """Struct hash of `message` as hex."""
        return self.typed_data(primary_type, message).hash_struct_hex()

    async def sign(self, typed_data: TypedData, account: Optional[str] = None) -> str:
        if account is not None and account.lower() != self.address.lower():
            raise ValidationError(f"Local signer holds {self.address}, cannot sign for {account}")
        return self.sign_envelope(typed_data)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address}, domain={self.domain})"


class RemoteSigner(Signer):
    """
    Delegates signing to a wallet provider.

    `provider` is anything exposing web3.py's async provider interface:
    `await provider.make_request(method, params)` returning a JSON-RPC
    response dict (`result` or `error`).
    """

    kind = SignerKind.REMOTE

    def __init__(self, provider: Any, method: str = "eth_signTypedData_v4"):
        self.provider = provider
        self.method = method

    @classmethod
    def from_settings(cls, provider: Any, settings: Optional[DaisySettings] = None) -> "RemoteSigner":
        """Remote signer using the configured wallet RPC method."""
        settings = settings or get_settings()
        return cls(provider, method=settings.sign_typed_data_method)

    async def sign_typed_data(self, account: str, typed_data: Union[TypedData, Mapping]) -> str:
        """
        Ask the wallet to sign. One request, no retry.

        Args:
            account: Signer address managed by the wallet
            typed_data: Envelope (TypedData or its dict form)

        Returns:
            Signature returned by the wallet

        Raises:
            ValidationError: If account is missing
            SignerRejectedError: If the wallet declines or the call fails
        """
        if not account:
            raise ValidationError("Missing `account` for remote signing")

        envelope = typed_data.to_dict() if isinstance(typed_data, TypedData) else dict(typed_data)
        params = [account, orjson.dumps(envelope).decode("utf-8")]

        try:
            response = await self.provider.make_request(self.method, params)
        except Exception as e:
            logger.warning(f"{self.method} failed for {account}: {type(e).__name__}")
            raise SignerRejectedError(f"Wallet provider failed to sign: {e}") from e

        error = response.get("error") if isinstance(response, Mapping) else None
        if error:
            if isinstance(error, Mapping):
                raise SignerRejectedError(
                    error.get("message") or "Signature request rejected",
                    code=error.get("code")
                )
            raise SignerRejectedError(str(error))

        signature = response.get("result") if isinstance(response, Mapping) else None
        if not signature:
            raise SignerRejectedError("Wallet provider returned no signature")

        logger.debug(f"Wallet signed {envelope.get('primaryType')} for {account}")
        return signature

    async def sign(self, typed_data: TypedData, account: Optional[str] = None) -> str:
        return await self.sign_typed_data(account, typed_data)

    def __repr__(self) -> str:
        return f"RemoteSigner(method={self.method!r})"


def recover_signer(typed_data: TypedData, signature: Union[str, bytes]) -> str:
    """
    Recover the address that produced `signature` over `typed_data`.

    Returns:
        Checksummed address
    """
    return Account.recover_message(typed_data.signable_message(), signature=signature)
