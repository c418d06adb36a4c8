"""
Type definitions for the Daisy SDK.

Pydantic models validate request payloads before they leave the process;
dataclasses carry credentials and normalized HTTP responses.
DECIMAL PRECISION: token amounts travel as decimal strings, never floats.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ValidationError
from .utils.validators import to_decimal_string


class InvoiceState(str, Enum):
    """Payment invoice state."""
    PENDING = "PENDING"
    UNDER_PAID = "UNDER_PAID"
    PAID = "PAID"
    OVER_PAID = "OVER_PAID"


class SubscriptionState(str, Enum):
    """Subscription state as reported by the backend."""
    NOT_STARTED = "NOT_STARTED"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ACTIVE_CANCELLED = "ACTIVE_CANCELLED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"
    NOT_ENOUGH_FUNDS = "NOT_ENOUGH_FUNDS"
    FAILED = "FAILED"


def coerce_state(state_type: Type[Enum], value: Any) -> Any:
    """
    Validate a `state` filter, either one state or a list of states.

    Args:
        state_type: `InvoiceState` or `SubscriptionState`
        value: State name(s), case-insensitive, or enum members

    Returns:
        Enum member, or a list of members when `value` is a list

    Raises:
        ValidationError: If a value is not a state of `state_type`
    """
    if value is None:
        return None

    many = isinstance(value, (list, tuple))
    try:
        states = [
            state_type(item.upper() if isinstance(item, str) else item)
            for item in (value if many else [value])
        ]
    except ValueError as e:
        allowed = ", ".join(member.value for member in state_type)
        raise ValidationError(
            f"Invalid {state_type.__name__} filter {value!r}, expected one of: {allowed}"
        ) from e
    return states if many else states[0]


@dataclass
class Credentials:
    """
    Manager credentials, sent as HTTP Basic Auth.

    Without `secret_key` only public read operations are allowed.
    SECURITY: `secret_key` is hidden from repr.
    """
    identifier: str
    secret_key: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.identifier:
            raise ValidationError("Missing `identifier` in credentials")

    @property
    def is_public(self) -> bool:
        return not self.secret_key

    def as_basic_auth(self) -> tuple[str, str]:
        return (self.identifier, self.secret_key or "")


@dataclass
class HTTPResponse:
    """Normalized response: body plus status line and headers."""
    data: Any
    status: int
    status_text: str
    headers: Mapping[str, str]


class InvoiceRequest(BaseModel):
    """Payload for creating a one-time payment invoice."""
    model_config = ConfigDict(populate_by_name=True)

    invoiced_price: str = Field(..., alias="invoicedPrice", description="Token amount (decimal string)")
    invoiced_email: Optional[str] = Field(None, alias="invoicedEmail")
    invoiced_name: Optional[str] = Field(None, alias="invoicedName")
    invoiced_detail: Optional[str] = Field(None, alias="invoicedDetail")

    @field_validator("invoiced_price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> str:
        """Convert int/Decimal/float/str to a decimal string."""
        if isinstance(v, float):
            v = Decimal(str(v))
        return to_decimal_string(v, field="invoicedPrice")


class InvitationRequest(BaseModel):
    """Payload for creating a plan invitation link."""
    model_config = ConfigDict(populate_by_name=True)

    max_usages: int = Field(default=0, ge=0, alias="maxUsages", description="0 means unlimited")
    active: bool = True
    callback_extra: dict[str, Any] = Field(default_factory=dict, alias="callbackExtra")
    callback_url: Optional[str] = Field(None, alias="callbackURL")
    redirect_url_default: Optional[str] = Field(None, alias="redirectURLDefault")
