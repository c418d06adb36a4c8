"""
Client factories.

Build an authenticated client and load the manager data in one call.
"""

from typing import Any, Mapping, Optional, Union
import logging

import requests
from web3 import Web3

from .api.base import HTTPClient
from .api.payments import PaymentsClient
from .api.subscriptions import SubscriptionsClient
from .config import DaisySettings
from .models import Credentials

logger = logging.getLogger(__name__)


def init_payments(
    credentials: Union[Credentials, Mapping[str, Any]],
    web3: Optional[Web3] = None,
    settings: Optional[DaisySettings] = None,
    session: Optional[requests.Session] = None
) -> PaymentsClient:
    """
    Create a synced payments client.

    Args:
        credentials: Payment group credentials
        web3: Optional Web3 instance for token helpers
        settings: Optional settings (defaults to environment)
        session: Optional requests session

    Returns:
        PaymentsClient with `manager` loaded from `/otp/`
    """
    http = HTTPClient(credentials, settings=settings, session=session)
    return PaymentsClient(http, web3=web3).sync()


def init_subscriptions(
    credentials: Union[Credentials, Mapping[str, Any]],
    web3: Optional[Web3] = None,
    settings: Optional[DaisySettings] = None,
    session: Optional[requests.Session] = None
) -> SubscriptionsClient:
    """Create a synced subscriptions client (manager and plans loaded)."""
    http = HTTPClient(credentials, settings=settings, session=session)
    client = SubscriptionsClient(http, web3=web3).sync()
    logger.debug(f"Subscription manager {client.manager.get('address')} ready")
    return client
