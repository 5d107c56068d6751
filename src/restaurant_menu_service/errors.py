"""Error types shared by every route.

All failures that reach a client are expressed as an ApiError and rendered
with the uniform envelope ``{"error": {"code": ..., "message": ...}}``.
"""

from typing import Any


class ApiError(Exception):
    """Error that carries an HTTP status and a client-safe code/message pair.

    Attributes:
        status: HTTP status code to respond with
        code: Stable machine-readable error code
        message: Human-readable message safe to show to clients
    """

    def __init__(self, status: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Render the error envelope.

        Returns:
            dict: ``{"error": {"code": ..., "message": ...}}``
        """
        return {"error": {"code": self.code, "message": self.message}}

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, code={self.code!r}, message={self.message!r})"


class UpstreamConfigurationError(RuntimeError):
    """Raised when the Square client is used without required configuration."""


INTERNAL_ERROR = ApiError(500, "INTERNAL_ERROR", "Something went wrong.")

SQUARE_CATEGORY_MESSAGES: dict[str, str] = {
    "NOT_FOUND": "The requested resource was not found in Square.",
    "UNAUTHORIZED": "Invalid or expired Square access token.",
    "RATE_LIMITED": "Too many requests to Square. Please try again shortly.",
    "INVALID_REQUEST_ERROR": "The request to Square was malformed.",
}

DEFAULT_SQUARE_MESSAGE = "An unexpected error occurred with the Square API."


def map_square_error(status: int, square_errors: list[dict[str, Any]] | None = None) -> ApiError:
    """Map Square's error array into an ApiError.

    Square reports failures as a list of ``{category, code, detail}`` objects.
    Only the first entry is considered. Known categories get a fixed friendly
    message, otherwise the entry's detail is used.

    Args:
        status: HTTP status returned by Square (passed through unchanged)
        square_errors: The ``errors`` array from the Square response body, if any

    Returns:
        ApiError describing the failure
    """
    first: dict[str, Any] = {}
    if square_errors and isinstance(square_errors[0], dict):
        first = square_errors[0]

    code = first.get("code") or "SQUARE_API_ERROR"
    message = (
        SQUARE_CATEGORY_MESSAGES.get(first.get("category") or "")
        or first.get("detail")
        or DEFAULT_SQUARE_MESSAGE
    )

    return ApiError(status, code, message)
