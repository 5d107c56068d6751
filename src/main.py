"""Main application entry point for the restaurant menu service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI
from redis.asyncio import Redis

from restaurant_menu_service.config import Settings
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.handlers.webhook_handler import WebhookHandler
from restaurant_menu_service.observability import configure_logging, setup_observability
from restaurant_menu_service.services.cache_service import CacheService
from restaurant_menu_service.services.catalog_service import CatalogService
from restaurant_menu_service.services.square_client import SquareClient

logger = logging.getLogger(__name__)


def get_redis_client(redis_url: str) -> Redis:
    """Create the async Redis client for the response cache.

    The client connects lazily, so an unreachable Redis does not prevent
    startup; cache operations simply degrade to misses.

    Args:
        redis_url: Redis connection URL

    Returns:
        Async Redis client returning decoded strings
    """
    logger.info(f"Using Redis cache at {redis_url}")
    return Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )


def create_application(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Loads settings and configures logging
    2. Creates the Redis-backed cache
    3. Creates the Square client
    4. Creates the catalog service and webhook handler
    5. Creates the FastAPI app
    6. Sets up observability when enabled

    Args:
        settings: Settings to use, loaded from the environment when omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    logger.info("Initializing restaurant menu service...")

    cache_service = CacheService(
        redis_client=get_redis_client(settings.redis_url),
        default_ttl_seconds=settings.cache_ttl_seconds,
    )

    if not settings.square_access_token:
        logger.warning("SQUARE_ACCESS_TOKEN is not set - Square API calls will fail")

    square_client = SquareClient(
        access_token=settings.square_access_token,
        base_url=settings.square_base_url,
    )
    logger.info(f"Square client configured - environment: {settings.square_environment}")

    catalog_service = CatalogService(
        square_client=square_client,
        cache_service=cache_service,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )

    if not settings.square_webhook_signature_key:
        logger.warning("SQUARE_WEBHOOK_SIGNATURE_KEY not configured - webhook signatures are not verified")

    webhook_handler = WebhookHandler(
        cache_service=cache_service,
        signature_key=settings.square_webhook_signature_key,
        notification_url=settings.webhook_notification_url,
    )

    app = create_app(
        catalog_service=catalog_service,
        webhook_handler=webhook_handler,
        api_keys=settings.api_keys,
    )

    if settings.otel_enabled:
        setup_observability(app)

    logger.info("Restaurant menu service initialized successfully")
    return app


# Create the application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
