"""Environment-driven service configuration."""

import os
from dataclasses import dataclass, field

SQUARE_PRODUCTION_URL = "https://connect.squareup.com/v2"
SQUARE_SANDBOX_URL = "https://connect.squareupsandbox.com/v2"

WEBHOOK_PATH = "/api/webhooks/square"


def _split_keys(raw: str) -> list[str]:
    return [key.strip() for key in raw.split(",") if key.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the menu service.

    Attributes:
        square_environment: "production" or "sandbox"
        square_access_token: Bearer token for the Square API (None if unset)
        square_webhook_signature_key: HMAC key for webhook verification, empty for open mode
        redis_url: Connection URL for the response cache
        public_base_url: Public URL the service is reachable at, used to rebuild
            the webhook notification URL
        api_keys: Accepted values for the X-API-Key header, empty to disable the gate
        cache_ttl_seconds: TTL for cached responses
        log_level: Logging level name
        environment: Deployment environment name
        otel_enabled: Whether to configure OpenTelemetry exporters
    """

    square_environment: str = "sandbox"
    square_access_token: str | None = None
    square_webhook_signature_key: str = ""
    redis_url: str = "redis://localhost:6379"
    public_base_url: str = "http://localhost:3000"
    api_keys: list[str] = field(default_factory=list)
    cache_ttl_seconds: int = 300
    log_level: str = "INFO"
    environment: str = "development"
    otel_enabled: bool = False

    @property
    def square_base_url(self) -> str:
        """Square API base URL for the configured environment."""
        if self.square_environment == "production":
            return SQUARE_PRODUCTION_URL
        return SQUARE_SANDBOX_URL

    @property
    def webhook_notification_url(self) -> str:
        """URL Square delivers webhooks to; part of the signed payload."""
        return self.public_base_url.rstrip("/") + WEBHOOK_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings populated from the current environment
        """
        return cls(
            square_environment=os.getenv("SQUARE_ENVIRONMENT", "sandbox"),
            square_access_token=os.getenv("SQUARE_ACCESS_TOKEN") or None,
            square_webhook_signature_key=os.getenv("SQUARE_WEBHOOK_SIGNATURE_KEY", ""),
            redis_url=os.getenv("REDIS_URL") or "redis://localhost:6379",
            public_base_url=os.getenv("PUBLIC_BASE_URL") or "http://localhost:3000",
            api_keys=_split_keys(os.getenv("API_KEY", "")),
            cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "300")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            environment=os.getenv("ENVIRONMENT", "development"),
            otel_enabled=os.getenv("OTEL_ENABLED", "false").lower() == "true",
        )
