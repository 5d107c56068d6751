"""FastAPI dependencies for API authentication."""

from typing import Annotated

from fastapi import Header, Request

from restaurant_menu_service.auth.api_key_validator import APIKeyValidator
from restaurant_menu_service.errors import ApiError


def check_api_key(x_api_key: str | None, validator: APIKeyValidator) -> None:
    """Reject the request unless the X-API-Key header is accepted.

    Args:
        x_api_key: Value of the X-API-Key header
        validator: Configured APIKeyValidator

    Raises:
        ApiError: 401 UNAUTHORIZED if the key is missing or wrong
    """
    if not validator.validate(x_api_key):
        raise ApiError(401, "UNAUTHORIZED", "Invalid or missing API key.")


def require_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """FastAPI dependency guarding routes with the app's APIKeyValidator.

    Args:
        request: Current request; the validator is read from app state
        x_api_key: API key from the X-API-Key header (injected by FastAPI)
    """
    check_api_key(x_api_key, request.app.state.api_key_validator)
