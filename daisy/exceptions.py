"""
Custom exceptions for the Daisy SDK.

Provides typed exceptions so callers can tell caller mistakes, transport
failures, backend rejections and signing failures apart.
"""

from typing import Optional, Any


class DaisyError(Exception):
    """Base exception for all Daisy SDK errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DaisyError):
    """Caller-supplied arguments are missing or malformed."""
    pass


class TransportError(DaisyError):
    """No response was received (connection refused, DNS, timeout...)."""
    pass


class APIError(DaisyError):
    """Backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response


class AuthenticationError(APIError):
    """Credentials rejected by the backend (401/403)."""
    pass


class GraphQLError(DaisyError):
    """GraphQL endpoint answered with an `errors` array."""

    def __init__(self, message: str, locations: Optional[list] = None,
                 path: Optional[list] = None, extensions: Optional[dict] = None,
                 data: Optional[Any] = None):
        super().__init__(message, {"path": path, "extensions": extensions})
        self.locations = locations
        self.path = path
        self.extensions = extensions
        self.data = data


class SignerRejectedError(DaisyError):
    """Wallet provider declined or failed to sign."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message, {"code": code})
        self.code = code


# Typed-data exceptions
class TypedDataError(DaisyError):
    """Base exception for EIP-712 encoding problems."""
    pass


class UnknownTypeError(TypedDataError):
    """Primary or referenced struct type is not declared in the schema."""

    def __init__(self, message: str, type_name: Optional[str] = None):
        super().__init__(message, {"type_name": type_name})
        self.type_name = type_name


class FieldMismatchError(TypedDataError):
    """Message does not match the struct declared in the schema."""

    def __init__(self, message: str, type_name: Optional[str] = None,
                 field: Optional[str] = None):
        super().__init__(message, {"type_name": type_name, "field": field})
        self.type_name = type_name
        self.field = field
