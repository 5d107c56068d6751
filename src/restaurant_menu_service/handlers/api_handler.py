"""FastAPI application for the menu API."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_menu_service.auth.api_dependencies import require_api_key
from restaurant_menu_service.auth.api_key_validator import APIKeyValidator
from restaurant_menu_service.config import WEBHOOK_PATH
from restaurant_menu_service.errors import INTERNAL_ERROR, ApiError
from restaurant_menu_service.handlers.webhook_handler import WebhookHandler
from restaurant_menu_service.models.menu_models import (
    CatalogResponse,
    Category,
    ErrorResponse,
    Location,
)
from restaurant_menu_service.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing or invalid parameter"},
    401: {"model": ErrorResponse, "description": "Invalid or missing API key"},
    502: {"model": ErrorResponse, "description": "Malformed upstream data"},
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


def _status_code_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.upper().replace(" ", "_")
    except ValueError:
        return "HTTP_ERROR"


def create_app(
    catalog_service: CatalogService,
    webhook_handler: WebhookHandler,
    api_keys: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        catalog_service: Service building menus, categories and locations
        webhook_handler: Handler for Square webhook deliveries
        api_keys: Accepted X-API-Key values; empty disables the gate

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await catalog_service.cache_service.close()

    app = FastAPI(
        title="Restaurant Menu Service",
        description="Location-scoped menus built from the Square catalog",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.catalog_service = catalog_service
    app.state.webhook_handler = webhook_handler
    app.state.api_key_validator = APIKeyValidator(api_keys=api_keys)

    if not app.state.api_key_validator.enabled:
        logger.warning("No API_KEY configured - menu routes are not authenticated")

    @app.exception_handler(ApiError)
    async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = ApiError(exc.status_code, _status_code_name(exc.status_code), str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=error.to_dict())

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        """Log method, path, status and duration; hide unexpected errors."""
        start = time.perf_counter()
        method, path = request.method, request.url.path

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception(f"{method} {path} -> 500 ({elapsed_ms:.1f}ms)")
            return JSONResponse(status_code=500, content=INTERNAL_ERROR.to_dict())

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{method} {path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    @app.get(
        "/api/locations",
        response_model=list[Location],
        responses=ERROR_RESPONSES,
        dependencies=[Depends(require_api_key)],
        tags=["Locations"],
    )
    async def list_locations() -> list[Location]:
        """List active restaurant locations."""
        locations: list[Location] = await app.state.catalog_service.get_locations()
        return locations

    @app.get(
        "/api/catalog",
        response_model=CatalogResponse,
        responses=ERROR_RESPONSES,
        dependencies=[Depends(require_api_key)],
        tags=["Catalog"],
    )
    async def get_catalog(location_id: str | None = None) -> CatalogResponse:
        """Get the menu for a location.

        Args:
            location_id: Square location ID (required)

        Returns:
            Items sorted by category plus the ordered category names
        """
        menu: CatalogResponse = await app.state.catalog_service.get_menu(location_id=location_id)
        return menu

    @app.get(
        "/api/catalog/categories",
        response_model=list[Category],
        responses=ERROR_RESPONSES,
        dependencies=[Depends(require_api_key)],
        tags=["Catalog"],
    )
    async def get_categories(location_id: str | None = None) -> list[Category]:
        """Get categories with item counts for a location.

        Args:
            location_id: Square location ID (required)

        Returns:
            Categories sorted by name
        """
        categories: list[Category] = await app.state.catalog_service.get_categories(
            location_id=location_id
        )
        return categories

    # Authenticated by signature instead of API key
    @app.post(
        WEBHOOK_PATH,
        responses={
            403: {"model": ErrorResponse, "description": "Invalid webhook signature"},
            500: {"model": ErrorResponse, "description": "Event could not be processed"},
        },
        tags=["Webhooks"],
    )
    async def square_webhook(
        request: Request,
        x_square_hmacsha256_signature: str | None = Header(None),
    ) -> dict[str, Any]:
        """Receive Square webhook notifications.

        The signature covers the exact body bytes, so the body is read raw.
        """
        raw_body = await request.body()
        result: dict[str, Any] = await app.state.webhook_handler.handle(
            raw_body, x_square_hmacsha256_signature
        )
        return result

    return app
