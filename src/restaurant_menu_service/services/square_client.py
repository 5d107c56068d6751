"""Client for the Square Connect API."""

import json
import logging
import time
from typing import Any

import httpx

from restaurant_menu_service.config import SQUARE_SANDBOX_URL
from restaurant_menu_service.errors import UpstreamConfigurationError, map_square_error
from restaurant_menu_service.observability.metrics import record_upstream_request

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0
IMAGE_UPLOAD_TIMEOUT_SECONDS = 30.0


class SquareClient:
    """HTTP client for the Square catalog and locations APIs.

    Every call is authenticated with a bearer token. Non-2xx responses and
    transport failures are translated into ApiError so that raw Square payloads
    never reach API clients. Calls are not retried.
    """

    def __init__(
        self,
        access_token: str | None,
        base_url: str = SQUARE_SANDBOX_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the Square client.

        Args:
            access_token: Square access token; may be None, in which case every
                call fails with UpstreamConfigurationError
            base_url: Square API base URL including the version prefix
            timeout: Per-request timeout in seconds
        """
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self, multipart: bool = False) -> dict[str, str]:
        if not self.access_token:
            raise UpstreamConfigurationError("SQUARE_ACCESS_TOKEN is not configured.")

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        # httpx sets the multipart boundary itself
        if not multipart:
            headers["Content-Type"] = "application/json"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request to Square and return the parsed JSON body.

        Args:
            method: HTTP method
            path: API path relative to the base URL (e.g. "/catalog/search")
            json: Optional JSON request body
            files: Optional multipart parts, in httpx's ``files`` format
            timeout: Per-request timeout overriding the client default

        Returns:
            The decoded JSON payload

        Raises:
            UpstreamConfigurationError: If no access token is configured
            ApiError: If Square returns a non-2xx status or cannot be reached
        """
        headers = self._headers(multipart=files is not None)
        url = f"{self.base_url}{path}"
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=timeout or self.timeout) as client:
                response = await client.request(
                    method, url, headers=headers, json=json, files=files
                )
        except httpx.RequestError as e:
            record_upstream_request(method, path, 0, time.perf_counter() - start)
            logger.error(f"Square request {method} {path} failed: {e!r}")
            raise map_square_error(
                503, [{"code": "NETWORK_ERROR", "detail": str(e) or "Unable to reach Square."}]
            ) from e

        record_upstream_request(method, path, response.status_code, time.perf_counter() - start)

        if response.is_success:
            return response.json()

        logger.warning(f"Square request {method} {path} returned {response.status_code}")
        raise map_square_error(response.status_code, self._error_list(response))

    @staticmethod
    def _error_list(response: httpx.Response) -> list[dict[str, Any]] | None:
        try:
            body = response.json()
        except ValueError:
            return None

        if isinstance(body, dict) and isinstance(body.get("errors"), list):
            return body["errors"]
        return None

    async def list_locations(self) -> Any:
        """Fetch all locations of the merchant.

        Returns:
            Raw ``GET /locations`` payload
        """
        return await self.request("GET", "/locations")

    async def search_catalog(
        self,
        object_types: list[str],
        cursor: str | None = None,
        include_related_objects: bool = True,
    ) -> Any:
        """Fetch one page of catalog objects.

        Args:
            object_types: Catalog object types to search (e.g. ["ITEM", "CATEGORY"])
            cursor: Pagination cursor from the previous page, if any
            include_related_objects: Whether to include referenced objects

        Returns:
            Raw ``POST /catalog/search`` payload
        """
        body: dict[str, Any] = {
            "object_types": object_types,
            "include_related_objects": include_related_objects,
        }
        if cursor:
            body["cursor"] = cursor

        return await self.request("POST", "/catalog/search", json=body)

    async def batch_upsert(self, batches: list[dict[str, Any]], idempotency_key: str) -> Any:
        """Create or update catalog objects in one call.

        Args:
            batches: List of ``{"objects": [...]}`` batches
            idempotency_key: Unique key so retried requests are not applied twice

        Returns:
            Raw ``POST /catalog/batch-upsert`` payload
        """
        return await self.request(
            "POST",
            "/catalog/batch-upsert",
            json={"idempotency_key": idempotency_key, "batches": batches},
        )

    async def batch_delete(self, object_ids: list[str]) -> Any:
        """Delete catalog objects by ID.

        Args:
            object_ids: IDs to delete

        Returns:
            Raw ``POST /catalog/batch-delete`` payload
        """
        return await self.request("POST", "/catalog/batch-delete", json={"object_ids": object_ids})

    async def upload_image(
        self,
        object_id: str,
        image: bytes,
        filename: str,
        caption: str,
        idempotency_key: str,
    ) -> Any:
        """Create an IMAGE object from a JPEG and attach it to a catalog object.

        Args:
            object_id: ID of the catalog object (e.g. an ITEM) to attach to
            image: JPEG bytes
            filename: File name reported to Square
            caption: Image caption
            idempotency_key: Unique key so retried uploads are not applied twice

        Returns:
            Raw ``POST /catalog/images`` payload
        """
        body = {
            "idempotency_key": idempotency_key,
            "object_id": object_id,
            "image": {
                "type": "IMAGE",
                "id": f"#img-{idempotency_key[:8]}",
                "image_data": {"caption": caption},
            },
        }
        files = {
            "request": (None, json.dumps(body), "application/json"),
            "file": (filename, image, "image/jpeg"),
        }
        return await self.request(
            "POST", "/catalog/images", files=files, timeout=IMAGE_UPLOAD_TIMEOUT_SECONDS
        )
