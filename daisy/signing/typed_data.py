"""
EIP-712 typed structured data encoding and hashing.

Implements encodeType / typeHash / encodeData / hashStruct and the domain
separator from https://eips.ethereum.org/EIPS/eip-712, plus the
`{types, domain, primaryType, message}` envelope handed to wallets.
"""

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError
from eth_account.messages import SignableMessage
from eth_utils import keccak, to_bytes, to_canonical_address, to_hex

from ..exceptions import FieldMismatchError, UnknownTypeError, ValidationError


EIP712_DOMAIN = "EIP712Domain"

# Canonical order of the optional EIP712Domain members
DOMAIN_FIELDS = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)

_INT_PATTERN = re.compile(r"^u?int(\d*)$")
_BYTES_PATTERN = re.compile(r"^bytes(\d+)$")
_ARRAY_PATTERN = re.compile(r"^(.+)\[(\d*)\]$")


class TypedField(NamedTuple):
    """Single `(name, type)` member of a struct declaration."""
    name: str
    type: str


FieldSpec = Union[Mapping, Tuple[str, str], TypedField]
TypeSchema = Mapping[str, Sequence[FieldSpec]]
Types = Dict[str, List[TypedField]]


def normalize_types(types: TypeSchema) -> Types:
    """
    Normalize a schema into `{struct: [TypedField, ...]}`.

    Accepts the JSON form (`{"name": ..., "type": ...}`) and `(name, type)`
    pairs. Declaration order is kept.
    """
    if not isinstance(types, Mapping):
        raise ValidationError(f"Types must be a mapping, got {type(types)}")

    normalized: Types = {}
    for struct_name, fields in types.items():
        members = []
        for spec in fields:
            if isinstance(spec, Mapping):
                members.append(TypedField(spec["name"], spec["type"]))
            else:
                name, field_type = spec
                members.append(TypedField(name, field_type))
        normalized[struct_name] = members
    return normalized


def make_domain(
    verifying_contract: str,
    name: Optional[str] = None,
    version: Optional[str] = None,
    chain_id: Optional[int] = None,
    salt: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build an EIP-712 domain. Only members that are set are included.

    Args:
        verifying_contract: Contract that verifies the signature
        name: Optional dApp name
        version: Optional signing domain version
        chain_id: Optional EIP-155 chain id
        salt: Optional 32-byte disambiguating salt

    Returns:
        Domain dict in wallet (camelCase) form
    """
    if not verifying_contract:
        raise ValidationError("Domain requires `verifyingContract`")

    domain: Dict[str, Any] = {}
    if name is not None:
        domain["name"] = name
    if version is not None:
        domain["version"] = version
    if chain_id is not None:
        domain["chainId"] = chain_id
    domain["verifyingContract"] = verifying_contract
    if salt is not None:
        domain["salt"] = salt
    return domain


def domain_type(domain: Mapping) -> List[TypedField]:
    """EIP712Domain declaration derived from the members present in `domain`."""
    return [TypedField(name, field_type) for name, field_type in DOMAIN_FIELDS if name in domain]


def _is_primitive(type_name: str) -> bool:
    if type_name in ("address", "bool", "string", "bytes"):
        return True

    match = _INT_PATTERN.match(type_name)
    if match:
        bits = int(match.group(1) or 256)
        return 8 <= bits <= 256 and bits % 8 == 0

    match = _BYTES_PATTERN.match(type_name)
    if match:
        return 1 <= int(match.group(1)) <= 32

    return False


def _parse_array(type_name: str) -> Optional[Tuple[str, Optional[int]]]:
    match = _ARRAY_PATTERN.match(type_name)
    if not match:
        return None
    length = match.group(2)
    return match.group(1), int(length) if length else None


def _base_type(type_name: str) -> str:
    parsed = _parse_array(type_name)
    while parsed:
        type_name = parsed[0]
        parsed = _parse_array(type_name)
    return type_name


def _require_struct(type_name: str, types: Types) -> List[TypedField]:
    if type_name not in types:
        raise UnknownTypeError(f"Unknown type `{type_name}`", type_name=type_name)
    return types[type_name]


def _find_dependencies(primary_type: str, types: Types, found: Optional[Set[str]] = None) -> Set[str]:
    if found is None:
        found = set()
    if primary_type in found:
        return found

    found.add(primary_type)
    for field in _require_struct(primary_type, types):
        base = _base_type(field.type)
        if base in types:
            _find_dependencies(base, types, found)
        elif not _is_primitive(base):
            raise UnknownTypeError(
                f"Unknown type `{base}` referenced by `{primary_type}.{field.name}`",
                type_name=base
            )
    return found


def _encode_type(primary_type: str, types: Types) -> str:
    dependencies = sorted(_find_dependencies(primary_type, types) - {primary_type})
    return "".join(
        f"{name}({','.join(f'{field.type} {field.name}' for field in types[name])})"
        for name in [primary_type] + dependencies
    )


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"{value} is not a finite number")
        if value != value.to_integral_value():
            raise ValueError(f"{value} is not an integer")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text, 10)
    raise TypeError(f"cannot encode {type(value).__name__} as an integer")


def _to_bytes(value: Any, allow_text: bool = False) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if value.startswith(("0x", "0X")):
            return to_bytes(hexstr=value)
        if allow_text:
            return value.encode("utf-8")
    raise TypeError(f"cannot encode {type(value).__name__} as bytes")


def _encode_atomic(field_type: str, value: Any) -> bytes:
    if field_type == "address":
        return abi_encode(["address"], [to_canonical_address(value)])

    if field_type == "bool":
        if isinstance(value, str):
            if value.lower() not in ("true", "false"):
                raise ValueError(f"{value!r} is not a boolean")
            value = value.lower() == "true"
        return abi_encode(["bool"], [bool(value)])

    match = _BYTES_PATTERN.match(field_type)
    if match:
        raw = _to_bytes(value)
        if len(raw) > int(match.group(1)):
            raise ValueError(f"{len(raw)} bytes do not fit in {field_type}")
        return raw.ljust(32, b"\x00")

    match = _INT_PATTERN.match(field_type)
    abi_type = field_type if match.group(1) else f"{field_type}256"
    return abi_encode([abi_type], [_to_int(value)])


def _encode_field(field_type: str, value: Any, types: Types, owner: str, field_name: str) -> bytes:
    if field_type in types:
        if not isinstance(value, Mapping):
            raise FieldMismatchError(
                f"`{owner}.{field_name}` must be a `{field_type}` struct",
                type_name=owner, field=field_name
            )
        return keccak(_encode_data(field_type, value, types))

    array = _parse_array(field_type)
    if array:
        element_type, length = array
        if not isinstance(value, (list, tuple)):
            raise FieldMismatchError(
                f"`{owner}.{field_name}` must be a list for `{field_type}`",
                type_name=owner, field=field_name
            )
        if length is not None and len(value) != length:
            raise FieldMismatchError(
                f"`{owner}.{field_name}` expects {length} items, got {len(value)}",
                type_name=owner, field=field_name
            )
        return keccak(b"".join(
            _encode_field(element_type, item, types, owner, field_name) for item in value
        ))

    try:
        if field_type == "string":
            if not isinstance(value, str):
                raise TypeError(f"cannot encode {type(value).__name__} as string")
            return keccak(text=value)
        if field_type == "bytes":
            return keccak(_to_bytes(value, allow_text=True))
        return _encode_atomic(field_type, value)
    except (TypeError, ValueError, OverflowError, EncodingError) as e:
        raise FieldMismatchError(
            f"Invalid value for `{owner}.{field_name}` ({field_type}): {e}",
            type_name=owner, field=field_name
        ) from e


def _encode_data(primary_type: str, message: Mapping, types: Types) -> bytes:
    fields = _require_struct(primary_type, types)
    if not isinstance(message, Mapping):
        raise FieldMismatchError(f"`{primary_type}` message must be a mapping", type_name=primary_type)

    parts = [keccak(text=_encode_type(primary_type, types))]
    for field in fields:
        if field.name not in message:
            raise FieldMismatchError(
                f"Missing field `{field.name}` for `{primary_type}`",
                type_name=primary_type, field=field.name
            )
        parts.append(_encode_field(field.type, message[field.name], types, primary_type, field.name))
    return b"".join(parts)


def encode_type(primary_type: str, types: TypeSchema) -> str:
    """
    Encode a struct declaration, e.g. `Mail(Person from,Person to,string contents)Person(...)`.

    Referenced struct types follow the primary type, sorted by name.

    Raises:
        UnknownTypeError: If the primary type or a referenced type is undeclared
    """
    return _encode_type(primary_type, normalize_types(types))


def type_hash(primary_type: str, types: TypeSchema) -> bytes:
    """keccak256 of `encode_type`."""
    return keccak(text=encode_type(primary_type, types))


def encode_data(primary_type: str, message: Mapping, types: TypeSchema) -> bytes:
    """
    Type hash followed by one 32-byte word per declared field.

    Raises:
        UnknownTypeError: If a struct type is undeclared
        FieldMismatchError: If a field is missing or has an unencodable value
    """
    return _encode_data(primary_type, message, normalize_types(types))


def hash_struct(primary_type: str, message: Mapping, types: TypeSchema) -> bytes:
    """
    EIP-712 struct hash of `message` as an instance of `primary_type`.

    Iterates the schema (never the message), so key order in `message`
    does not affect the result.

    Args:
        primary_type: Struct name declared in `types`
        message: Field values
        types: Type schema

    Returns:
        32-byte digest
    """
    return keccak(encode_data(primary_type, message, types))


class TypedData:
    """
    Typed-data envelope: types + domain + primary type + message.

    Example:
        >>> data = TypedData(
        ...     types={"CancelSubscription": [("subscriptionId", "bytes32")]},
        ...     domain={"verifyingContract": "0x..."},
        ...     primary_type="CancelSubscription",
        ...     message={"subscriptionId": "0x..."},
        ... )
        >>> data.hash_struct_hex()
    """

    def __init__(
        self,
        types: TypeSchema,
        domain: Mapping,
        primary_type: str,
        message: Mapping
    ):
        if not isinstance(domain, Mapping):
            raise ValidationError(f"Domain must be a mapping, got {type(domain)}")

        normalized = normalize_types(types)
        if EIP712_DOMAIN not in normalized:
            normalized[EIP712_DOMAIN] = domain_type(domain)

        # Fail early on undeclared types; message checks happen when hashing
        _find_dependencies(primary_type, normalized)
        _find_dependencies(EIP712_DOMAIN, normalized)

        self.types = normalized
        self.domain = dict(domain)
        self.primary_type = primary_type
        self.message = dict(message) if isinstance(message, Mapping) else message

    def hash_struct(self) -> bytes:
        """Struct hash of the message."""
        return keccak(_encode_data(self.primary_type, self.message, self.types))

    def hash_struct_hex(self) -> str:
        return to_hex(self.hash_struct())

    def domain_separator(self) -> bytes:
        """Struct hash of the domain."""
        return keccak(_encode_data(EIP712_DOMAIN, self.domain, self.types))

    def signable_message(self) -> SignableMessage:
        """EIP-191 version 0x01 message, as accepted by `Account.sign_message`."""
        return SignableMessage(
            version=b"\x01",
            header=self.domain_separator(),
            body=self.hash_struct(),
        )

    def digest(self) -> bytes:
        """Final signing digest: keccak256(0x19 0x01 || domainSeparator || hashStruct)."""
        return keccak(b"\x19\x01" + self.domain_separator() + self.hash_struct())

    def to_dict(self) -> Dict[str, Any]:
        """Wallet-ready envelope with EIP712Domain declared."""
        return {
            "types": {
                name: [{"name": field.name, "type": field.type} for field in fields]
                for name, fields in self.types.items()
            },
            "domain": dict(self.domain),
            "primaryType": self.primary_type,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"TypedData(primary_type={self.primary_type!r}, domain={self.domain!r})"


def encode(
    types: TypeSchema,
    domain: Mapping,
    primary_type: str,
    message: Mapping
) -> Dict[str, Any]:
    """
    Build the typed-data envelope for an external signing call.

    The message is checked against the schema before it is returned.

    Raises:
        UnknownTypeError: If `primary_type` or a referenced type is undeclared
        FieldMismatchError: If `message` does not match `primary_type`
    """
    typed_data = TypedData(types, domain, primary_type, message)
    typed_data.hash_struct()
    return typed_data.to_dict()
