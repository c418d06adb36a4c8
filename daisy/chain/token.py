"""
ERC20 token helpers for paying invoices from Python.

Provides:
- Loading a payable's token contract (`tokenAddress` of an invoice or plan)
- ETH / token balances
- Paying an invoice with an ERC20 `transfer`
- Reading past `Transfer` events sent to an invoice address

The returned transaction hash can be fed to `ConfirmationPoller`.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from eth_account import Account
from eth_utils import to_hex
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import Web3Exception

from ..exceptions import TransportError, ValidationError
from ..utils.validators import ZERO_ADDRESS, validate_address, validate_private_key

logger = logging.getLogger(__name__)

# Subset of the ERC20 interface used by the SDK
ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view"
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"}
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable"
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False}
        ]
    },
]


def is_ether(token_address: Optional[str]) -> bool:
    """Native ETH is represented by the zero address."""
    return bool(token_address) and token_address.lower() == ZERO_ADDRESS


def load_token(web3: Web3, payable: Mapping) -> Optional[Contract]:
    """
    Load the ERC20 contract of an invoice or plan.

    Args:
        web3: Connected Web3 instance
        payable: Object with a `tokenAddress` field

    Returns:
        Token contract, or None when the payable is priced in ETH

    Raises:
        ValidationError: If `payable` or its `tokenAddress` is missing
    """
    if not payable:
        raise ValidationError("Payable resource argument missing")
    token_address = payable.get("tokenAddress")
    if not token_address:
        raise ValidationError("Payable resource has no `tokenAddress`")

    if is_ether(token_address):
        return None
    return web3.eth.contract(address=validate_address(token_address), abi=ERC20_ABI)


def balance_of(web3: Web3, account: str, token: Optional[Contract] = None) -> int:
    """
    Balance of `account` in `token`, or in ETH (wei) when no token is given.

    Raises:
        ValidationError: If `account` is missing or invalid
    """
    if not account:
        raise ValidationError("balance_of() requires an account")
    account = validate_address(account)

    if token is not None:
        return token.functions.balanceOf(account).call()
    return web3.eth.get_balance(account)


class TokenPayments:
    """
    Invoice payments over one ERC20 token.

    Example:
        >>> token = load_token(web3, invoice)
        >>> tx_hash = TokenPayments(web3, token).pay(invoice, {"from": account})
    """

    def __init__(self, web3: Web3, token: Contract):
        if token is None:
            raise ValidationError("Token contract missing; ETH invoices cannot be paid with transfer()")
        self.web3 = web3
        self.token = token

    def pay(
        self,
        invoice: Mapping,
        transaction: Dict[str, Any],
        private_key: Optional[Union[str, bytes]] = None
    ) -> str:
        """
        Transfer `invoicedPrice` tokens to the invoice `address`.

        Without `private_key` the node signs for `transaction["from"]`
        (unlocked or wallet-managed account). With it, the transaction is
        signed locally and sent raw.

        Args:
            invoice: Object with `invoicedPrice` (base units) and `address`
            transaction: Transaction fields; must contain `from`
            private_key: Optional key of the payer

        Returns:
            Transaction hash (0x hex)

        Raises:
            ValidationError: If the invoice or `from` is missing
            TransportError: If the node rejects the transaction
        """
        if not invoice:
            raise ValidationError("Missing `invoice` argument")
        if not transaction or not transaction.get("from"):
            raise ValidationError("Missing `transaction['from']`")

        to = validate_address(invoice.get("address"))
        try:
            amount = int(invoice.get("invoicedPrice"))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid `invoicedPrice`: {invoice.get('invoicedPrice')!r}") from e
        payer = validate_address(transaction["from"])
        tx_fields = {**transaction, "from": payer}

        logger.info(f"Paying invoice {invoice.get('identifier', to)}: {amount} to {to} from {payer}")

        transfer = self.token.functions.transfer(to, amount)
        try:
            if private_key is None:
                tx_hash = transfer.transact(tx_fields)
            else:
                key = validate_private_key(private_key)
                if Account.from_key(key).address != payer:
                    raise ValidationError("`private_key` does not match `transaction['from']`")
                if "nonce" not in tx_fields:
                    tx_fields["nonce"] = self.web3.eth.get_transaction_count(payer)
                tx = transfer.build_transaction(tx_fields)
                signed_tx = self.web3.eth.account.sign_transaction(tx, private_key=key)
                tx_hash = self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Web3Exception as e:
            logger.error(f"Invoice payment failed: {type(e).__name__}")
            raise TransportError(f"Token transfer failed: {e}") from e

        tx_hash = to_hex(tx_hash)
        logger.info(f"Invoice payment tx: {tx_hash}")
        return tx_hash

    def get_transfers(
        self,
        invoice: Mapping,
        from_block: Union[int, str] = 0,
        to_block: Union[int, str] = "latest"
    ) -> List[Any]:
        """
        Past `Transfer` events sent to the invoice address.

        Useful to check a payment that is still processing on the backend.
        """
        if not invoice:
            raise ValidationError("Missing `invoice` argument")
        to = validate_address(invoice.get("address"))

        return list(self.token.events.Transfer.get_logs(
            argument_filters={"to": to},
            from_block=from_block,
            to_block=to_block,
        ))
