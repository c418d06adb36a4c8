"""Tests for the service subscriptions client and client factories."""

from unittest.mock import Mock

import orjson
import pytest

from daisy.api.service import ServiceSubscriptionsClient
from daisy.client import init_payments, init_subscriptions
from daisy.exceptions import ValidationError

from .conftest import MANAGER_ADDRESS, TOKEN_ADDRESS, make_response


@pytest.fixture
def service(http):
    return ServiceSubscriptionsClient(http)


class TestServiceSubscriptions:
    """Test plan listing and direct subscription creation."""

    def test_get_plans_returns_body(self, service, mock_session, plan):
        body = {"data": [plan], "meta": {"count": 1}}
        mock_session.request.return_value = make_response(body=body)

        assert service.get_plans() == body

        kwargs = mock_session.request.call_args.kwargs
        assert (kwargs["method"], kwargs["url"]) == ("GET", "https://sdk.test/plans/")

    @pytest.mark.parametrize("plan_arg", ["plan-1", {"id": "plan-1", "name": "Pro"}])
    def test_create_subscription(self, service, mock_session, plan_arg):
        body = {"data": {"id": "sub-1", "state": "PENDING"}}
        mock_session.request.return_value = make_response(body=body)

        assert service.create_subscription(plan_arg) == body

        kwargs = mock_session.request.call_args.kwargs
        assert (kwargs["method"], kwargs["url"]) == ("POST", "https://sdk.test/subscriptions/")
        assert orjson.loads(kwargs["data"]) == {"planId": "plan-1"}

    @pytest.mark.parametrize("plan_arg", [None, "", {"name": "no id"}])
    def test_create_subscription_requires_plan(self, service, mock_session, plan_arg):
        with pytest.raises(ValidationError):
            service.create_subscription(plan_arg)
        assert mock_session.request.call_count == 0


class TestFactories:
    """Test init_* helpers construct and sync in one call."""

    def test_init_payments(self, settings, mock_session):
        mock_session.request.return_value = make_response(
            body={"data": {"tokenAddress": TOKEN_ADDRESS, "walletAddress": MANAGER_ADDRESS}}
        )
        web3 = Mock()

        payments = init_payments({"identifier": "group-id"}, web3=web3,
                                 settings=settings, session=mock_session)

        assert payments.manager == {
            "identifier": "group-id",
            "tokenAddress": TOKEN_ADDRESS,
            "walletAddress": MANAGER_ADDRESS,
        }
        assert payments.web3 is web3
        assert mock_session.request.call_args.kwargs["url"] == "https://sdk.test/otp/"

    def test_init_subscriptions(self, credentials, settings, mock_session, manager_data):
        mock_session.request.return_value = make_response(body={"data": manager_data})

        subscriptions = init_subscriptions(credentials, settings=settings, session=mock_session)

        assert subscriptions.manager["address"] == MANAGER_ADDRESS
        assert subscriptions.manager["identifier"] == "manager-id"
        assert subscriptions.web3 is None
        assert mock_session.request.call_args.kwargs["url"] == "https://sdk.test/"
