"""
Payments client: one-time invoices paid in ERC20 tokens.

Read operations work with public credentials; `create_invoice` needs the
manager secret key.
"""

from typing import Optional, Any, Dict
import logging

from pydantic import ValidationError as PydanticValidationError
from web3 import Web3
from web3.contract import Contract

from .base import HTTPClient
from ..chain.token import TokenPayments, balance_of, load_token
from ..exceptions import ValidationError
from ..models import InvoiceRequest, InvoiceState, coerce_state
from ..utils.validators import ZERO_ADDRESS

logger = logging.getLogger(__name__)


def _is_unset_address(address: Optional[str]) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


class PaymentsClient:
    """
    Client for the one-time payments (`/otp/`) endpoints.

    Example:
        >>> payments = PaymentsClient(HTTPClient(Credentials("id", "secret")))
        >>> invoice = payments.create_invoice(invoiced_price="12.5")
    """

    def __init__(self, http: HTTPClient, web3: Optional[Web3] = None):
        """
        Initialize payments client.

        Args:
            http: Authenticated HTTP client
            web3: Optional Web3 instance for the token helpers
        """
        self.http = http
        self.web3 = web3
        self.manager: Dict[str, Any] = {"identifier": http.credentials.identifier}

    def get_data(self) -> Dict[str, Any]:
        """Fetch the payment group (manager) data."""
        return self.http.get("/otp/").data["data"]

    def sync(self) -> "PaymentsClient":
        """
        Refresh `manager` from the backend.

        Warns when the manager has no token or wallet address configured,
        since invoices cannot be paid until both are set.
        """
        data = self.get_data()
        self.manager = {
            **self.manager,
            **data,
            "identifier": self.http.credentials.identifier,
        }

        if _is_unset_address(self.manager.get("tokenAddress")):
            logger.warning(
                f"Payment group {self.manager['identifier']} has no token address configured"
            )
        if _is_unset_address(self.manager.get("walletAddress")):
            logger.warning(
                f"Payment group {self.manager['identifier']} has no wallet address configured"
            )
        return self

    def get_invoices(self, **filter: Any) -> Any:
        """
        List invoices.

        Args:
            **filter: Query filters (lists are sent as repeated keys)

        Raises:
            ValidationError: If `state` is not an InvoiceState
        """
        if "state" in filter:
            filter["state"] = coerce_state(InvoiceState, filter["state"])
        return self.http.get("/otp/invoices/", params=filter).data["data"]

    def get_invoice(self, identifier: Optional[str] = None, address: Optional[str] = None) -> Any:
        """
        Fetch a single invoice by identifier or by its payment address.

        Raises:
            ValidationError: If neither argument is given
        """
        return self.http.get(self._invoice_path(identifier, address)).data["data"]

    def get_receipts(self, identifier: Optional[str] = None, address: Optional[str] = None) -> Any:
        """Fetch the receipts of an invoice."""
        path = self._invoice_path(identifier, address) + "receipts/"
        return self.http.get(path).data["data"]

    def create_invoice(
        self,
        invoiced_price: Any = None,
        invoiced_email: Optional[str] = None,
        invoiced_name: Optional[str] = None,
        invoiced_detail: Optional[str] = None
    ) -> Any:
        """
        Create an invoice.

        Args:
            invoiced_price: Token amount (int, Decimal or numeric string)
            invoiced_email: Optional payer email
            invoiced_name: Optional payer name
            invoiced_detail: Optional free-form detail

        Returns:
            Created invoice (including its payment `address`)

        Raises:
            ValidationError: If the price is missing or invalid
        """
        if invoiced_price is None:
            raise ValidationError("Missing `invoicedPrice`")

        try:
            request = InvoiceRequest(
                invoiced_price=invoiced_price,
                invoiced_email=invoiced_email,
                invoiced_name=invoiced_name,
                invoiced_detail=invoiced_detail,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid invoice: {e.errors()[0]['msg']}") from e

        payload = request.model_dump(by_alias=True)
        logger.info(f"Creating invoice for {payload['invoicedPrice']} tokens")
        return self.http.post("/otp/", json_data=payload).data["data"]

    @staticmethod
    def _invoice_path(identifier: Optional[str], address: Optional[str]) -> str:
        if identifier:
            return f"/otp/invoices/{identifier}/"
        if address:
            return f"/otp/invoices/address/{address}/"
        raise ValidationError("Missing `identifier` or `address`")

    # On-chain

    def _require_web3(self) -> Web3:
        if self.web3 is None:
            raise ValidationError("Web3 not present: pass `web3` when constructing the client")
        return self.web3

    def load_token(self, invoice: Dict[str, Any]) -> Optional[Contract]:
        """Token contract of `invoice`, or None for ETH invoices."""
        return load_token(self._require_web3(), invoice)

    def balance_of(self, account: str, token: Optional[Contract] = None) -> int:
        """Token balance of `account`, or its ETH balance when `token` is None."""
        return balance_of(self._require_web3(), account, token)

    def prepare_token(self, token: Contract) -> TokenPayments:
        """
        Wrap a token contract for paying invoices.

        Example:
            >>> token = payments.load_token(invoice)
            >>> tx_hash = payments.prepare_token(token).pay(invoice, {"from": account})
        """
        return TokenPayments(self._require_web3(), token)
