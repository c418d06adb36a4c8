"""API modules for the Daisy SDK."""

from .base import HTTPClient, encode_query
from .payments import PaymentsClient
from .subscriptions import SubscriptionsClient
from .graphql import GraphQLClient
from .service import ServiceSubscriptionsClient

__all__ = [
    "HTTPClient",
    "encode_query",
    "PaymentsClient",
    "SubscriptionsClient",
    "ServiceSubscriptionsClient",
    "GraphQLClient",
]
