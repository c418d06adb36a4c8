"""
Configuration management for the Daisy SDK.

Loads settings from environment variables with validation.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://sdk.daisypayments.com"
DEFAULT_GRAPHQL_URL = "https://api.daisypayments.com"


class DaisySettings(BaseSettings):
    """
    Daisy SDK settings.

    Loads from environment variables with DAISY_ prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="DAISY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API URLs
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="REST SDK API URL"
    )
    graphql_url: str = Field(
        default=DEFAULT_GRAPHQL_URL,
        description="GraphQL API URL"
    )

    # Timeouts are left to the transport unless set explicitly
    request_timeout: Optional[float] = Field(
        default=None, gt=0, description="Read timeout (seconds)"
    )
    connect_timeout: Optional[float] = Field(
        default=None, gt=0, description="Connection timeout (seconds)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_requests: bool = Field(default=False, description="Log all HTTP requests")

    # Signing
    sign_typed_data_method: str = Field(
        default="eth_signTypedData_v4",
        description="Wallet RPC method used by the remote signer"
    )
    signature_ttl_seconds: int = Field(
        default=600, ge=1, description="Default agreement signature lifetime"
    )

    # Confirmation poller
    confirmation_interval: float = Field(
        default=3.0, ge=0, description="Delay between confirmation polls (seconds)"
    )

    @property
    def timeout(self) -> Optional[tuple[Optional[float], Optional[float]]]:
        """Timeout tuple for `requests`, or None when nothing is configured."""
        if self.connect_timeout is None and self.request_timeout is None:
            return None
        return (self.connect_timeout, self.request_timeout)

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"DaisySettings("
            f"base_url={self.base_url}, "
            f"graphql_url={self.graphql_url}, "
            f"log_level={self.log_level}"
            ")"
        )


def get_settings() -> DaisySettings:
    """
    Get Daisy settings.

    Returns:
        Validated settings instance
    """
    return DaisySettings()
