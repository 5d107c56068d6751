"""Square webhook handler for catalog change notifications."""

import base64
import hashlib
import hmac
import json
import logging
from typing import Any

from pydantic import BaseModel, field_validator

from restaurant_menu_service.errors import ApiError
from restaurant_menu_service.services.cache_service import CacheService
from restaurant_menu_service.services.catalog_service import (
    CATALOG_CACHE_PREFIX,
    CATEGORIES_CACHE_PREFIX,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-square-hmacsha256-signature"
CATALOG_UPDATED_EVENT = "catalog.version.updated"


class SquareWebhookEvent(BaseModel):
    """Envelope of a Square webhook notification.

    Only ``type`` drives behavior. The other fields are carried as sent, and a
    ``type`` that is missing or not a string reads as empty.

    Attributes:
        type: Event type, e.g. "catalog.version.updated"
        merchant_id: Merchant the event belongs to
        event_id: Unique delivery identifier
        created_at: ISO 8601 timestamp of the event
        data: Event-specific payload
    """

    type: str = ""
    merchant_id: Any = None
    event_id: Any = None
    created_at: Any = None
    data: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


def compute_signature(signature_key: str, notification_url: str, raw_body: bytes) -> str:
    """Compute Square's webhook signature.

    Square signs ``notification_url + body`` with HMAC-SHA256 and sends the
    base64 digest in the x-square-hmacsha256-signature header.

    Args:
        signature_key: Webhook subscription signature key
        notification_url: URL the subscription delivers to
        raw_body: Exact request body bytes

    Returns:
        Base64-encoded signature
    """
    digest = hmac.new(
        signature_key.encode("utf-8"),
        notification_url.encode("utf-8") + raw_body,
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class WebhookHandler:
    """Verifies Square webhooks and busts cached catalog data on changes.

    Signature failures (403) are kept distinct from processing failures (500).
    Nothing here retries; redelivery is Square's responsibility.
    """

    def __init__(
        self,
        cache_service: CacheService,
        signature_key: str,
        notification_url: str,
    ) -> None:
        """Initialize the webhook handler.

        Args:
            cache_service: Cache to invalidate on catalog changes
            signature_key: Signature key; empty disables verification
            notification_url: Public URL of the webhook endpoint
        """
        self.cache_service = cache_service
        self.signature_key = signature_key
        self.notification_url = notification_url

    def is_valid_signature(self, raw_body: bytes, signature: str | None) -> bool:
        """Check the webhook signature in constant time.

        Args:
            raw_body: Exact request body bytes
            signature: Value of the signature header, None if absent

        Returns:
            bool: True if valid, or if no signature key is configured
        """
        if not self.signature_key:
            return True
        if not signature:
            return False

        expected = compute_signature(self.signature_key, self.notification_url, raw_body)
        # compare_digest returns False on length mismatch
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))

    async def handle(self, raw_body: bytes, signature: str | None) -> dict[str, Any]:
        """Verify and process one webhook delivery.

        Args:
            raw_body: Exact request body bytes
            signature: Value of the signature header, None if absent

        Returns:
            Acknowledgement payload; includes invalidation counts for
            catalog updates

        Raises:
            ApiError: 403 FORBIDDEN on a bad signature, 500 WEBHOOK_ERROR if the
                body cannot be processed
        """
        if not self.is_valid_signature(raw_body, signature):
            logger.warning("Invalid webhook signature, rejecting request")
            raise ApiError(403, "FORBIDDEN", "Invalid webhook signature.")

        try:
            event = self.parse_event(raw_body)
            logger.info(f"Square event: {event.type or '<none>'}")

            if event.type == CATALOG_UPDATED_EVENT:
                return await self.invalidate_catalog()

            return {"ok": True, "message": "Event ignored."}

        except Exception as e:
            logger.exception(f"Failed to process webhook: {e}")
            raise ApiError(500, "WEBHOOK_ERROR", "Failed to process event.") from e

    @staticmethod
    def parse_event(raw_body: bytes) -> SquareWebhookEvent:
        """Parse the webhook body.

        Args:
            raw_body: Exact request body bytes

        Returns:
            SquareWebhookEvent; bodies that are valid JSON but not an object
            yield an event with an empty type

        Raises:
            ValueError: If the body is not valid JSON
        """
        payload = json.loads(raw_body)
        if not isinstance(payload, dict):
            return SquareWebhookEvent()
        return SquareWebhookEvent.model_validate(payload)

    async def invalidate_catalog(self) -> dict[str, Any]:
        """Delete every cached menu and category summary.

        Returns:
            Acknowledgement with the number of keys removed per namespace
        """
        catalog = await self.cache_service.invalidate(f"{CATALOG_CACHE_PREFIX}:*")
        categories = await self.cache_service.invalidate(f"{CATEGORIES_CACHE_PREFIX}:*")
        logger.info(f"Invalidated {catalog} catalog and {categories} category cache keys")

        return {"ok": True, "invalidated": {"catalog": catalog, "categories": categories}}
