"""
Subscriptions client: plans, subscriptions, invitations and agreements.

Agreements are EIP-712 `Subscription` / `CancelSubscription` messages
scoped to the subscription manager contract. They are signed either by the
subscriber's wallet (RemoteSigner) or, for private plans, authorized
server-side with the manager's authorizer key (LocalSigner).
"""

from collections.abc import Mapping
from typing import Optional, Any, Dict, Union
from datetime import datetime
import logging
import warnings

import orjson
from pydantic import ValidationError as PydanticValidationError
from web3 import Web3
from web3.contract import Contract

from .base import HTTPClient
from ..chain.token import balance_of, load_token
from ..exceptions import ValidationError
from ..models import InvitationRequest, SubscriptionState, coerce_state
from ..signing.schema import (
    CANCEL_ACTION,
    CANCEL_SUBSCRIPTION,
    SUBSCRIPTION,
    SUBSCRIPTION_TYPES,
)
from ..signing.signer import LocalSigner, Signer
from ..signing.typed_data import TypedData
from ..utils.validators import (
    ZERO_ADDRESS,
    gen_nonce,
    signature_expiration,
    to_decimal_string,
    validate_address,
    validate_private_key,
)

logger = logging.getLogger(__name__)

Expiration = Optional[Union[datetime, int, float]]


def _plan_id(plan: Union[Mapping, str, None]) -> str:
    plan_id = plan.get("id") if isinstance(plan, Mapping) else plan
    if not plan_id:
        raise ValidationError("Missing `plan` (plan mapping with `id`, or plan id)")
    return str(plan_id)


def _on_chain_id(entity: Union[Mapping, str, None], name: str) -> str:
    on_chain_id = entity.get("onChainId") if isinstance(entity, Mapping) else entity
    if not on_chain_id:
        raise ValidationError(f"Missing `{name}.onChainId`")
    return on_chain_id


class SubscriptionsClient:
    """
    Client for a subscription manager.

    `manager` starts with the identifier only; call `sync()` to load the
    contract address and token before building or signing agreements.
    """

    def __init__(self, http: HTTPClient, web3: Optional[Web3] = None):
        self.http = http
        self.web3 = web3
        self.manager: Dict[str, Any] = {"identifier": http.credentials.identifier}

    # Reads

    def get_data(self) -> Dict[str, Any]:
        """Fetch manager data (including its plans)."""
        return self.http.get("/").data["data"]

    def get_plans(self) -> Dict[str, Any]:
        """Deprecated alias of `get_data`."""
        warnings.warn(
            "get_plans() is deprecated, use get_data()",
            DeprecationWarning,
            stacklevel=2
        )
        return self.get_data()

    def sync(self) -> "SubscriptionsClient":
        """Merge backend manager data into `manager`, keeping the identifier."""
        data = self.get_data()
        self.manager = {
            **self.manager,
            **data,
            "identifier": self.http.credentials.identifier,
        }
        logger.debug(f"Synced subscription manager {self.manager['identifier']}")
        return self

    def get_subscriptions(self, **filter: Any) -> Any:
        """
        List subscriptions.

        Args:
            **filter: Query filters, e.g. `account=...`, `token=[a, b]`

        Raises:
            ValidationError: If `state` holds an unknown SubscriptionState
        """
        if "state" in filter:
            filter["state"] = coerce_state(SubscriptionState, filter["state"])
        return self.http.get("/subscriptions/", params=filter).data["data"]

    def get_subscription(self, daisy_id: Optional[str] = None, on_chain_id: Optional[str] = None) -> Any:
        """
        Fetch one subscription by Daisy id or on-chain id.

        Raises:
            ValidationError: If neither argument is given
        """
        return self.http.get(self._subscription_path(daisy_id, on_chain_id)).data["data"]

    def get_receipts(self, daisy_id: Optional[str] = None, on_chain_id: Optional[str] = None) -> Any:
        """Fetch billing receipts of a subscription."""
        path = self._subscription_path(daisy_id, on_chain_id) + "receipts/"
        return self.http.get(path).data["data"]

    # Writes

    def submit(
        self,
        agreement: Mapping,
        signature: str,
        receipt: Optional[Any] = None,
        auth_signature: Optional[str] = None
    ) -> Any:
        """
        Submit a signed subscription agreement.

        Args:
            agreement: Signed `Subscription` message
            signature: Subscriber signature
            receipt: Token approval receipt, if any
            auth_signature: Authorizer signature for private plans

        Returns:
            Full response body
        """
        if not agreement or not signature:
            raise ValidationError("Missing `agreement` or `signature`")

        payload: Dict[str, Any] = {
            "agreement": dict(agreement),
            "receipt": receipt,
            "signature": signature,
        }
        if auth_signature:
            payload["authSignature"] = auth_signature
        return self.http.post("/subscriptions/", json_data=payload).data

    def submit_cancel(self, agreement: Mapping, signature: str) -> Any:
        """Submit a signed `CancelSubscription` agreement. Returns the full body."""
        if not agreement or not signature:
            raise ValidationError("Missing `agreement` or `signature`")

        payload = {"agreement": dict(agreement), "signature": signature}
        return self.http.post("/subscriptions/cancel/", json_data=payload).data

    def create_invitation(
        self,
        plan: Union[Mapping, str],
        active: bool = True,
        max_usages: int = 0,
        callback_url: Optional[str] = None,
        callback_extra: Optional[Mapping] = None,
        redirect_url_default: Optional[str] = None
    ) -> Any:
        """
        Create an invitation link for a plan.

        Args:
            plan: Plan mapping (with `id`) or plan id
            active: Whether the invitation accepts subscriptions
            max_usages: Usage cap, 0 for unlimited
            callback_url: URL called after subscribing
            callback_extra: JSON-serializable data forwarded to the callback
            redirect_url_default: Where the subscriber is sent afterwards

        Raises:
            ValidationError: If the plan is missing or the payload is invalid
        """
        plan_id = _plan_id(plan)

        extra = dict(callback_extra or {})
        try:
            orjson.dumps(extra)
        except TypeError as e:
            raise ValidationError(f"`callbackExtra` must be JSON-serializable: {e}") from e

        try:
            request = InvitationRequest(
                active=active,
                max_usages=max_usages,
                callback_url=callback_url,
                callback_extra=extra,
                redirect_url_default=redirect_url_default,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid invitation: {e.errors()[0]['msg']}") from e

        payload = request.model_dump(by_alias=True, exclude_none=True)
        logger.info(f"Creating invitation for plan {plan_id}")
        return self.http.post(f"/plans/{plan_id}/invitations/", json_data=payload).data["data"]

    # Agreements

    def build_agreement(
        self,
        subscriber: str,
        plan: Mapping,
        nonce: Optional[str] = None,
        signature_expires_at: Expiration = None
    ) -> Dict[str, Any]:
        """
        Build a `Subscription` message for `subscriber` joining `plan`.

        Args:
            subscriber: Subscriber address (zero address allowed)
            plan: Plan mapping from `get_data()["plans"]`
            nonce: 32-byte hex nonce (random if omitted)
            signature_expires_at: Expiration (default: now + signature TTL)

        Returns:
            Agreement with amounts as decimal strings
        """
        if not isinstance(plan, Mapping):
            raise ValidationError("`plan` must be a plan mapping")

        token = plan.get("tokenAddress") or self.manager.get("tokenAddress")
        if not token:
            raise ValidationError("Missing token address (plan or synced manager)")

        return {
            "subscriber": validate_address(subscriber),
            "token": validate_address(token),
            "price": to_decimal_string(plan.get("price"), field="plan.price"),
            "periodUnit": plan.get("periodUnit"),
            "periods": to_decimal_string(plan.get("periods"), field="plan.periods"),
            "maxExecutions": to_decimal_string(plan.get("maxExecutions"), field="plan.maxExecutions"),
            "plan": _on_chain_id(plan, "plan"),
            "nonce": nonce or gen_nonce(),
            "signatureExpiresAt": self._expiration(signature_expires_at),
        }

    def build_cancel_agreement(
        self,
        subscription: Union[Mapping, str],
        nonce: Optional[str] = None,
        signature_expires_at: Expiration = None
    ) -> Dict[str, Any]:
        """Build a `CancelSubscription` message for a subscription (mapping or on-chain id)."""
        return {
            "action": CANCEL_ACTION,
            "subscriptionId": _on_chain_id(subscription, "subscription"),
            "nonce": nonce or gen_nonce(),
            "signatureExpiresAt": self._expiration(signature_expires_at),
        }

    def typed_data(self, primary_type: str, agreement: Mapping) -> TypedData:
        """Wrap an agreement into an envelope bound to the manager contract."""
        address = self.manager.get("address")
        if not address:
            raise ValidationError("Manager has no contract `address`, call sync() first")
        return TypedData(SUBSCRIPTION_TYPES, {"verifyingContract": address}, primary_type, agreement)

    async def sign(
        self,
        signer: Signer,
        account: str,
        plan: Mapping,
        nonce: Optional[str] = None,
        signature_expires_at: Expiration = None
    ) -> Dict[str, Any]:
        """
        Build and sign a subscription agreement for `account`.

        Returns:
            `{"agreement": ..., "signature": ...}` ready for `submit`
        """
        agreement = self.build_agreement(account, plan, nonce, signature_expires_at)
        typed_data = self.typed_data(SUBSCRIPTION, agreement)
        signature = await signer.sign(typed_data, account=account)
        return {"agreement": agreement, "signature": signature}

    async def sign_cancel(
        self,
        signer: Signer,
        account: str,
        subscription: Union[Mapping, str],
        nonce: Optional[str] = None,
        signature_expires_at: Expiration = None
    ) -> Dict[str, Any]:
        """Build and sign a cancellation agreement. Returns `{agreement, signature}`."""
        agreement = self.build_cancel_agreement(subscription, nonce, signature_expires_at)
        typed_data = self.typed_data(CANCEL_SUBSCRIPTION, agreement)
        signature = await signer.sign(typed_data, account=account)
        return {"agreement": agreement, "signature": signature}

    def authorize(
        self,
        private_key: Union[str, bytes],
        agreement: Mapping,
        allow_any_address: bool = False
    ) -> str:
        """
        Authorize an agreement on a private plan with the authorizer key.

        Safe to use on public plans too. Fetches the manager to get the
        contract address.

        Args:
            private_key: Authorizer private key (must match the manager's `authorizer`)
            agreement: `Subscription` agreement to authorize
            allow_any_address: Sign with the zero address as subscriber so
                any account can use the signature

        Returns:
            Authorization signature (`auth_signature` for `submit`)
        """
        if not private_key:
            raise ValidationError("Missing authorizer `private_key`")
        private_key = validate_private_key(private_key)

        manager = self.get_data()
        signer = LocalSigner(private_key, manager.get("address"))
        message = {
            **agreement,
            "subscriber": ZERO_ADDRESS if allow_any_address else agreement.get("subscriber"),
        }
        return signer.sign_typed_data(SUBSCRIPTION, message)

    def _expiration(self, expires_at: Expiration) -> str:
        return signature_expiration(expires_at, ttl_seconds=self.http.settings.signature_ttl_seconds)

    @staticmethod
    def _subscription_path(daisy_id: Optional[str], on_chain_id: Optional[str]) -> str:
        if daisy_id:
            return f"/subscriptions/{daisy_id}/"
        if on_chain_id:
            return f"/subscriptions/hash/{on_chain_id}/"
        raise ValidationError("Missing `daisy_id` or `on_chain_id`")

    # On-chain

    def _require_web3(self) -> Web3:
        if self.web3 is None:
            raise ValidationError("Web3 not present: pass `web3` when constructing the client")
        return self.web3

    def load_token(self, plan: Dict[str, Any]) -> Optional[Contract]:
        """Token contract a plan is billed in, or None for ETH plans."""
        return load_token(self._require_web3(), plan)

    def balance_of(self, account: str, token: Optional[Contract] = None) -> int:
        """Token balance of `account`, or its ETH balance when `token` is None."""
        return balance_of(self._require_web3(), account, token)
