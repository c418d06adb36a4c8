"""
Base HTTP client for the Daisy REST backend.

Every call is a single request/response round trip: no retries, no
deduplication. Requests are authenticated with HTTP Basic Auth built from
the manager credentials.

orjson is used for JSON bodies and responses.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Optional, Any, Dict, List, Tuple
from urllib.parse import urlencode
import logging

import orjson
import requests

from ..config import DaisySettings, get_settings
from ..exceptions import APIError, AuthenticationError, TransportError
from ..models import Credentials, HTTPResponse

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def _query_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return orjson.dumps(dict(value)).decode("utf-8")
    return str(value)


def encode_query(data: Optional[Mapping[str, Any]]) -> str:
    """
    Encode request data as a query string.

    `None` values are dropped, lists repeat the key, mappings are sent as
    JSON and booleans as `true`/`false`.

    Args:
        data: Query parameters

    Returns:
        Percent-encoded query string (no leading "?")
    """
    if not data:
        return ""

    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _query_value(item)) for item in value if item is not None)
        else:
            pairs.append((key, _query_value(value)))
    return urlencode(pairs)


def _parse_body(response: requests.Response) -> Any:
    content_type = response.headers.get("Content-Type", "")
    if content_type.split(";")[0].strip().lower() == "text/html":
        return response.text
    if not response.content:
        return None
    try:
        return orjson.loads(response.content)
    except orjson.JSONDecodeError:
        logger.debug(f"Non-JSON response body ({content_type or 'no content type'})")
        return response.text


class HTTPClient:
    """
    Authenticated HTTP client bound to one manager's credentials.

    Usage:
        >>> with HTTPClient(Credentials("my-manager", "secret")) as http:
        ...     http.get("/otp/").data
    """

    def __init__(
        self,
        credentials: Credentials,
        settings: Optional[DaisySettings] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None
    ):
        """
        Initialize HTTP client.

        Args:
            credentials: Manager identifier and optional secret key
            settings: SDK settings (loaded from the environment if omitted)
            session: Preconfigured requests session (one is created if omitted)
            base_url: Override for `settings.base_url`
        """
        if isinstance(credentials, Mapping):
            credentials = Credentials(
                identifier=credentials.get("identifier"),
                secret_key=credentials.get("secret_key", credentials.get("secretKey"))
            )
        self.credentials = credentials
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.base_url).rstrip("/")
        self.timeout = self.settings.timeout

        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        self.session.auth = credentials.as_basic_auth()

    def request(
        self,
        method: str,
        path: str,
        data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> HTTPResponse:
        """
        Send one request.

        Args:
            method: HTTP method
            path: Path relative to the base URL (leading "/")
            data: Query parameters for GET, JSON body otherwise
            headers: Extra headers

        Returns:
            Normalized response

        Raises:
            AuthenticationError: On 401/403
            APIError: On any other non-2xx status
            TransportError: If no response was received
        """
        method = method.upper()
        is_get = method == "GET"

        url = f"{self.base_url}{path}"
        query = encode_query(data) if is_get else ""
        if query:
            url = f"{url}?{query}"

        body = None
        if not is_get and data is not None:
            body = orjson.dumps(data)

        if self.settings.log_requests:
            logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                data=body,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Transport error: {method} {self.base_url}{path}: {type(e).__name__}")
            raise TransportError(f"Request failed: {method} {path}: {e}") from e

        payload = _parse_body(response)

        if not response.ok:
            message = None
            if isinstance(payload, Mapping):
                message = payload.get("message")
            if not message:
                message = f"{method} {path} failed with {response.status_code}"

            error_cls = AuthenticationError if response.status_code in (401, 403) else APIError
            logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise error_cls(message, status_code=response.status_code, response=payload)

        return HTTPResponse(
            data=payload,
            status=response.status_code,
            status_text=response.reason or "",
            headers=dict(response.headers),
        )

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None,
            headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
        """GET with `params` encoded as the query string."""
        return self.request("GET", path, data=params, headers=headers)

    def post(self, path: str, json_data: Optional[Any] = None,
             headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
        """POST with `json_data` as the JSON body."""
        return self.request("POST", path, data=json_data, headers=headers)

    def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session:
            self.session.close()
            logger.debug("HTTP client session closed")

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HTTPClient(base_url={self.base_url}, identifier={self.credentials.identifier})"


__all__ = ["HTTPClient", "Credentials", "HTTPResponse", "encode_query"]
