"""
Publisher configuration.

Settings are read once at startup from the environment (or a .env file) and
passed into the publisher. Nothing reads the environment per order.
"""

from typing import Any, Optional

import httpx
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkout.errors import ConfigurationError

REQUIRED_SETTINGS = ("SERVICE_BUS", "QUEUE_NAME", "ERROR_NOTIFICATION_URL")


class PublisherSettings(BaseSettings):
    """Queue and alerting configuration for the order publisher"""

    # Required, no defaults
    SERVICE_BUS: str
    QUEUE_NAME: str
    ERROR_NOTIFICATION_URL: str

    # Delivery tuning
    MAX_SEND_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_DELAY: float = Field(default=0.8, ge=0)
    MAX_RETRY_DELAY: float = Field(default=60.0, ge=0)
    SEND_TIMEOUT: float = Field(default=60.0, gt=0)
    NOTIFICATION_TIMEOUT: float = Field(default=10.0, gt=0)
    RECONNECT_DELAY: float = Field(default=5.0, ge=0)

    # Picture URIs on order lines
    CATALOG_BASE_URL: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator(*REQUIRED_SETTINGS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("ERROR_NOTIFICATION_URL")
    @classmethod
    def _http_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an http or https URL with a host")
        return value


def load_publisher_settings(**overrides: Any) -> PublisherSettings:
    """
    Load and validate publisher settings.

    Keyword arguments override environment values (e.g. `_env_file=None`
    to ignore a local .env file).

    Raises:
        ConfigurationError: Naming every missing or malformed variable.
    """
    try:
        return PublisherSettings(**overrides)
    except ValidationError as e:
        names = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ConfigurationError(
            f"Invalid or missing publisher configuration: {', '.join(names)}"
        ) from e


def validate_publisher_settings(settings: Optional[PublisherSettings]) -> PublisherSettings:
    """
    Re-check an already built settings object.

    Guards against settings created with `model_construct` or mutated after
    loading, which skip pydantic validation.
    """
    if settings is None:
        raise ConfigurationError("Publisher settings are required")

    blank = [
        name for name in REQUIRED_SETTINGS
        if not str(getattr(settings, name, "") or "").strip()
    ]
    if blank:
        raise ConfigurationError(
            f"Invalid or missing publisher configuration: {', '.join(blank)}"
        )
    return settings
