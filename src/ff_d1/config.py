"""
Connection settings for the Cloudflare D1 HTTP backend.

Values can be given explicitly or read from environment variables:
    CLOUDFLARE_ACCOUNT_ID       (required)
    CLOUDFLARE_D1_DATABASE_ID   (required)
    CLOUDFLARE_API_TOKEN        (required)
    FF_D1_BASE_URL              (optional)
    FF_D1_TIMEOUT               (optional, seconds)
"""

import os
from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class D1Config:
    """Account, database and credentials for the D1 REST API."""

    account_id: str
    database_id: str
    api_token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        for name in ("account_id", "database_id", "api_token"):
            if not getattr(self, name):
                raise ConfigurationError(f"D1Config.{name} is required")
        if self.timeout <= 0:
            raise ConfigurationError(f"D1Config.timeout must be positive, got {self.timeout}")

    @property
    def query_url(self) -> str:
        """Endpoint that executes a single SQL statement."""
        return (
            f"{self.base_url.rstrip('/')}/accounts/{self.account_id}"
            f"/d1/database/{self.database_id}/query"
        )

    @classmethod
    def from_env(cls) -> "D1Config":
        """Load configuration from environment variables."""
        missing = [
            var
            for var in (
                "CLOUDFLARE_ACCOUNT_ID",
                "CLOUDFLARE_D1_DATABASE_ID",
                "CLOUDFLARE_API_TOKEN",
            )
            if not os.getenv(var)
        ]
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

        timeout = DEFAULT_TIMEOUT
        if raw_timeout := os.getenv("FF_D1_TIMEOUT"):
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(
                    f"FF_D1_TIMEOUT must be a number, got {raw_timeout!r}"
                ) from e

        return cls(
            account_id=os.environ["CLOUDFLARE_ACCOUNT_ID"],
            database_id=os.environ["CLOUDFLARE_D1_DATABASE_ID"],
            api_token=os.environ["CLOUDFLARE_API_TOKEN"],
            base_url=os.getenv("FF_D1_BASE_URL") or DEFAULT_BASE_URL,
            timeout=timeout,
        )
