"""Shared fixtures for Daisy SDK tests."""

from typing import Any, Optional
from unittest.mock import Mock

import orjson
import pytest
import requests

from daisy.api.base import HTTPClient
from daisy.config import DaisySettings
from daisy.models import Credentials


MANAGER_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TOKEN_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
SUBSCRIBER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

# Well-known development key (hardhat account #0), never used with real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def make_response(
    status: int = 200,
    body: Any = None,
    content_type: Optional[str] = "application/json",
    raw: Optional[bytes] = None,
    reason: str = "OK"
) -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = "https://sdk.test/"
    if raw is not None:
        response._content = raw
    elif body is None:
        response._content = b""
    else:
        response._content = orjson.dumps(body)
    if content_type:
        response.headers["Content-Type"] = content_type
    return response


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return DaisySettings(_env_file=None, base_url="https://sdk.test/")


@pytest.fixture
def credentials():
    return Credentials(identifier="manager-id", secret_key="s3cr3t")


@pytest.fixture
def mock_session():
    """Session double; tests set `request.return_value` / `side_effect`."""
    session = Mock()
    session.headers = {}
    session.request.return_value = make_response(body={"data": {}})
    return session


@pytest.fixture
def http(credentials, settings, mock_session):
    return HTTPClient(credentials, settings=settings, session=mock_session)


@pytest.fixture
def plan():
    return {
        "id": "plan-1",
        "name": "Pro",
        "onChainId": "0x" + "ab" * 32,
        "price": "1500000000000000000",
        "periods": 1,
        "periodUnit": "MONTH",
        "maxExecutions": "12",
        "tokenAddress": TOKEN_ADDRESS,
        "private": False,
    }


@pytest.fixture
def manager_data(plan):
    return {
        "name": "Acme",
        "address": MANAGER_ADDRESS,
        "tokenAddress": TOKEN_ADDRESS,
        "walletAddress": SUBSCRIBER_ADDRESS,
        "authorizer": TEST_ADDRESS,
        "plans": [plan],
    }
