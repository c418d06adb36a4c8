"""
Daisy SDK

Python client for the Daisy payments and subscriptions platform on
Ethereum: REST/GraphQL clients, EIP-712 agreement signing, webhook
verification and a transaction confirmation poller.

Example:
    >>> from daisy import Credentials, HTTPClient, SubscriptionsClient
    >>> http = HTTPClient(Credentials("DAISY_ID", "DAISY_SECRET_KEY"))
    >>> subscriptions = SubscriptionsClient(http).sync()
"""

__version__ = "1.0.0"

from .api import (
    GraphQLClient,
    HTTPClient,
    PaymentsClient,
    ServiceSubscriptionsClient,
    SubscriptionsClient,
)
from .chain import (
    ConfirmationEvent,
    ConfirmationPoller,
    PollErrorEvent,
    TokenPayments,
    Web3ChainReader,
)
from .client import init_payments, init_subscriptions
from .config import DaisySettings, get_settings
from .exceptions import (
    DaisyError,
    ValidationError,
    TransportError,
    APIError,
    AuthenticationError,
    GraphQLError,
    SignerRejectedError,
    TypedDataError,
    UnknownTypeError,
    FieldMismatchError,
)
from .models import Credentials, HTTPResponse, InvoiceState, SubscriptionState
from .signing import (
    LocalSigner,
    RemoteSigner,
    Signer,
    SignerKind,
    TypedData,
    SUBSCRIPTION_TYPES,
    recover_signer,
)
from .utils.validators import ZERO_ADDRESS, gen_nonce
from . import webhooks

__all__ = [
    "__version__",
    # Clients
    "HTTPClient",
    "PaymentsClient",
    "SubscriptionsClient",
    "ServiceSubscriptionsClient",
    "GraphQLClient",
    "init_payments",
    "init_subscriptions",
    "Credentials",
    "HTTPResponse",
    "InvoiceState",
    "SubscriptionState",
    # Signing
    "Signer",
    "SignerKind",
    "LocalSigner",
    "RemoteSigner",
    "TypedData",
    "SUBSCRIPTION_TYPES",
    "recover_signer",
    # Chain
    "ConfirmationPoller",
    "ConfirmationEvent",
    "PollErrorEvent",
    "Web3ChainReader",
    "TokenPayments",
    # Config
    "DaisySettings",
    "get_settings",
    # Exceptions
    "DaisyError",
    "ValidationError",
    "TransportError",
    "APIError",
    "AuthenticationError",
    "GraphQLError",
    "SignerRejectedError",
    "TypedDataError",
    "UnknownTypeError",
    "FieldMismatchError",
    # Utilities
    "ZERO_ADDRESS",
    "gen_nonce",
    "webhooks",
]
