"""Tests for ERC20 token helpers."""

from unittest.mock import Mock

import pytest
from web3 import Web3
from web3.exceptions import Web3Exception

from daisy.api.payments import PaymentsClient
from daisy.api.subscriptions import SubscriptionsClient
from daisy.chain.token import ERC20_ABI, TokenPayments, balance_of, is_ether, load_token
from daisy.exceptions import TransportError, ValidationError
from daisy.utils.validators import ZERO_ADDRESS

from .conftest import SUBSCRIBER_ADDRESS, TEST_ADDRESS, TEST_PRIVATE_KEY, TOKEN_ADDRESS


INVOICE_ADDRESS = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def invoice():
    return {
        "identifier": "inv-1",
        "address": INVOICE_ADDRESS.lower(),
        "invoicedPrice": "2500000",
        "tokenAddress": TOKEN_ADDRESS,
    }


@pytest.fixture
def token():
    token = Mock()
    token.functions.transfer.return_value.transact.return_value = bytes.fromhex("ab" * 32)
    return token


@pytest.fixture
def web3():
    web3 = Mock()
    web3.eth.get_transaction_count.return_value = 7
    web3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
    return web3


class TestLoadToken:
    """Test contract loading."""

    def test_erc20_contract(self, invoice):
        token = load_token(Web3(), invoice)

        assert token.address == TOKEN_ADDRESS
        assert {item["name"] for item in token.abi} == {"balanceOf", "transfer", "Transfer"}

    def test_ether_payable(self):
        assert load_token(Web3(), {"tokenAddress": ZERO_ADDRESS}) is None

    @pytest.mark.parametrize("payable", [None, {}, {"tokenAddress": ""}])
    def test_missing_token_address(self, payable):
        with pytest.raises(ValidationError):
            load_token(Web3(), payable)

    def test_is_ether(self):
        assert is_ether(ZERO_ADDRESS)
        assert not is_ether(TOKEN_ADDRESS)
        assert not is_ether(None)

    def test_abi_declares_transfer_event(self):
        event = next(item for item in ERC20_ABI if item["type"] == "event")
        assert [arg["indexed"] for arg in event["inputs"]] == [True, True, False]


class TestBalanceOf:
    """Test balance reads."""

    def test_ether_balance(self, web3):
        web3.eth.get_balance.return_value = 10**18

        assert balance_of(web3, SUBSCRIBER_ADDRESS.lower()) == 10**18
        web3.eth.get_balance.assert_called_once_with(SUBSCRIBER_ADDRESS)

    def test_token_balance(self, web3, token):
        token.functions.balanceOf.return_value.call.return_value = 42

        assert balance_of(web3, SUBSCRIBER_ADDRESS, token) == 42
        token.functions.balanceOf.assert_called_once_with(SUBSCRIBER_ADDRESS)
        web3.eth.get_balance.assert_not_called()

    @pytest.mark.parametrize("account", [None, "", "0x1234"])
    def test_invalid_account(self, web3, account):
        with pytest.raises(ValidationError):
            balance_of(web3, account)


class TestTokenPayments:
    """Test invoice payment transfers."""

    def test_pay_with_node_account(self, web3, token, invoice):
        tx_hash = TokenPayments(web3, token).pay(invoice, {"from": TEST_ADDRESS.lower()})

        assert tx_hash == TX_HASH
        token.functions.transfer.assert_called_once_with(INVOICE_ADDRESS, 2500000)
        token.functions.transfer.return_value.transact.assert_called_once_with({"from": TEST_ADDRESS})

    def test_pay_with_private_key(self, web3, token, invoice):
        transfer = token.functions.transfer.return_value
        transfer.build_transaction.return_value = {"to": TOKEN_ADDRESS, "nonce": 7}

        tx_hash = TokenPayments(web3, token).pay(invoice, {"from": TEST_ADDRESS}, private_key=TEST_PRIVATE_KEY)

        assert tx_hash == TX_HASH
        transfer.build_transaction.assert_called_once_with({"from": TEST_ADDRESS, "nonce": 7})
        web3.eth.account.sign_transaction.assert_called_once_with(
            {"to": TOKEN_ADDRESS, "nonce": 7}, private_key=TEST_PRIVATE_KEY
        )
        web3.eth.send_raw_transaction.assert_called_once_with(
            web3.eth.account.sign_transaction.return_value.raw_transaction
        )
        transfer.transact.assert_not_called()

    def test_explicit_nonce_kept(self, web3, token, invoice):
        TokenPayments(web3, token).pay(invoice, {"from": TEST_ADDRESS, "nonce": 3}, private_key=TEST_PRIVATE_KEY)

        token.functions.transfer.return_value.build_transaction.assert_called_once_with(
            {"from": TEST_ADDRESS, "nonce": 3}
        )
        web3.eth.get_transaction_count.assert_not_called()

    def test_key_must_match_payer(self, web3, token, invoice):
        with pytest.raises(ValidationError):
            TokenPayments(web3, token).pay(invoice, {"from": SUBSCRIBER_ADDRESS}, private_key=TEST_PRIVATE_KEY)
        web3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.parametrize("transaction", [None, {}, {"gas": 100000}])
    def test_requires_from(self, web3, token, invoice, transaction):
        with pytest.raises(ValidationError):
            TokenPayments(web3, token).pay(invoice, transaction)
        token.functions.transfer.assert_not_called()

    def test_invalid_price(self, web3, token, invoice):
        with pytest.raises(ValidationError):
            TokenPayments(web3, token).pay({**invoice, "invoicedPrice": "2.5"}, {"from": TEST_ADDRESS})

    def test_node_error_wrapped(self, web3, token, invoice):
        token.functions.transfer.return_value.transact.side_effect = Web3Exception("execution reverted")

        with pytest.raises(TransportError) as exc_info:
            TokenPayments(web3, token).pay(invoice, {"from": TEST_ADDRESS})
        assert isinstance(exc_info.value.__cause__, Web3Exception)

    def test_requires_token(self, web3):
        with pytest.raises(ValidationError):
            TokenPayments(web3, None)

    def test_get_transfers(self, web3, token, invoice):
        token.events.Transfer.get_logs.return_value = ({"args": {"value": 2500000}},)

        transfers = TokenPayments(web3, token).get_transfers(invoice, from_block=100)

        assert transfers == [{"args": {"value": 2500000}}]
        token.events.Transfer.get_logs.assert_called_once_with(
            argument_filters={"to": INVOICE_ADDRESS}, from_block=100, to_block="latest"
        )


class TestClientTokenHelpers:
    """Test token helpers exposed on the domain clients."""

    def test_requires_web3(self, http, invoice):
        with pytest.raises(ValidationError):
            PaymentsClient(http).load_token(invoice)
        with pytest.raises(ValidationError):
            SubscriptionsClient(http).balance_of(SUBSCRIBER_ADDRESS)

    def test_payments_prepare_token(self, http, web3, token, invoice):
        payments = PaymentsClient(http, web3=web3)

        assert payments.prepare_token(token).pay(invoice, {"from": TEST_ADDRESS}) == TX_HASH

    def test_payments_balance(self, http, web3):
        web3.eth.get_balance.return_value = 5
        assert PaymentsClient(http, web3=web3).balance_of(SUBSCRIBER_ADDRESS) == 5

    def test_subscriptions_load_token(self, http, plan):
        token = SubscriptionsClient(http, web3=Web3()).load_token(plan)
        assert token.address == TOKEN_ADDRESS
