"""Unit tests for the Square webhook handler."""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import InMemoryRedis, ScriptedSquareClient

from restaurant_menu_service.errors import ApiError
from restaurant_menu_service.handlers.webhook_handler import (
    WebhookHandler,
    compute_signature,
)
from restaurant_menu_service.services.cache_service import CacheService
from restaurant_menu_service.services.catalog_service import CatalogService

SIGNATURE_KEY = "whsec-test-key"
NOTIFICATION_URL = "https://menu.example.com/api/webhooks/square"

CATALOG_UPDATED = json.dumps(
    {
        "merchant_id": "M123",
        "type": "catalog.version.updated",
        "event_id": "evt-1",
        "created_at": "2024-05-01T12:00:00Z",
        "data": {"type": "catalog", "object": {"catalog_version": {"updated_at": "2024-05-01T12:00:00Z"}}},
    }
).encode()


def sign(body: bytes, key: str = SIGNATURE_KEY, url: str = NOTIFICATION_URL) -> str:
    return compute_signature(key, url, body)


@pytest.fixture
def handler(cache_service: CacheService) -> WebhookHandler:
    """Fixture providing a handler with signature verification enabled."""
    return WebhookHandler(
        cache_service=cache_service,
        signature_key=SIGNATURE_KEY,
        notification_url=NOTIFICATION_URL,
    )


@pytest.mark.unit
class TestSignatureVerification:
    """Test suite for webhook signature checks."""

    def test_known_signature_value(self) -> None:
        """Test the signature against a precomputed HMAC-SHA256 digest."""
        body = b'{"type":"catalog.version.updated"}'
        assert (
            compute_signature("key", "https://x.test/hook", body)
            == "tW/KsJSCi6NButj1YknzKGEq4vi4B4I8MlNAEo+1uaM="
        )

    def test_valid_signature_accepted(self, handler: WebhookHandler) -> None:
        """Test a correctly signed body is accepted."""
        assert handler.is_valid_signature(CATALOG_UPDATED, sign(CATALOG_UPDATED)) is True

    @pytest.mark.parametrize(
        "signature",
        [
            None,
            "",
            "not-base64!",
            sign(CATALOG_UPDATED)[:-2],
            sign(CATALOG_UPDATED) + "A",
            sign(CATALOG_UPDATED, key="other-key"),
            sign(CATALOG_UPDATED, url="https://menu.example.com/other"),
        ],
    )
    def test_wrong_signature_rejected(self, handler: WebhookHandler, signature: str | None) -> None:
        """Test missing, truncated, extended and mis-keyed signatures."""
        assert handler.is_valid_signature(CATALOG_UPDATED, signature) is False

    def test_modified_body_rejected(self, handler: WebhookHandler) -> None:
        """Test that changing a single body byte invalidates the signature."""
        signature = sign(CATALOG_UPDATED)
        tampered = CATALOG_UPDATED.replace(b"evt-1", b"evt-2")

        assert handler.is_valid_signature(tampered, signature) is False

    def test_flipped_signature_character_rejected(self, handler: WebhookHandler) -> None:
        """Test that changing a single signature character invalidates it."""
        signature = sign(CATALOG_UPDATED)
        flipped = ("B" if signature[0] == "A" else "A") + signature[1:]

        assert handler.is_valid_signature(CATALOG_UPDATED, flipped) is False

    def test_no_key_configured_accepts_anything(self, cache_service: CacheService) -> None:
        """Test that verification is skipped without a signature key."""
        handler = WebhookHandler(cache_service, signature_key="", notification_url=NOTIFICATION_URL)

        assert handler.is_valid_signature(b"anything", None) is True
        assert handler.is_valid_signature(b"anything", "garbage") is True


@pytest.mark.unit
class TestHandle:
    """Test suite for processing webhook deliveries."""

    @pytest.mark.asyncio
    async def test_bad_signature_raises_403_without_touching_cache(
        self, handler: WebhookHandler, fake_redis: InMemoryRedis
    ) -> None:
        """Test a rejected delivery leaves the cache alone."""
        fake_redis.store["catalog:LOC1"] = "{}"

        with pytest.raises(ApiError) as exc_info:
            await handler.handle(CATALOG_UPDATED, "wrong")

        assert exc_info.value.status == 403
        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.message == "Invalid webhook signature."
        assert "catalog:LOC1" in fake_redis.store

    @pytest.mark.asyncio
    async def test_catalog_update_invalidates_menu_and_category_keys(
        self, handler: WebhookHandler, fake_redis: InMemoryRedis
    ) -> None:
        """Test catalog and category keys are removed and others kept."""
        fake_redis.store.update(
            {
                "catalog:LOC1": "{}",
                "catalog:LOC2": "{}",
                "categories:LOC1": "[]",
                "locations": "[]",
            }
        )

        result = await handler.handle(CATALOG_UPDATED, sign(CATALOG_UPDATED))

        assert result == {"ok": True, "invalidated": {"catalog": 2, "categories": 1}}
        assert set(fake_redis.store) == {"locations"}

    @pytest.mark.asyncio
    async def test_invalidation_spans_multiple_scan_batches(
        self, handler: WebhookHandler, fake_redis: InMemoryRedis
    ) -> None:
        """Test that more keys than one SCAN batch are all removed."""
        for i in range(250):
            fake_redis.store[f"catalog:LOC{i}"] = "{}"

        result = await handler.handle(CATALOG_UPDATED, sign(CATALOG_UPDATED))

        assert result["invalidated"]["catalog"] == 250
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_catalog_update_with_unexpected_fields_still_invalidates(
        self, handler: WebhookHandler, fake_redis: InMemoryRedis
    ) -> None:
        """Test that only the event type decides whether caches are cleared."""
        body = json.dumps(
            {"type": "catalog.version.updated", "data": None, "event_id": 42, "merchant_id": None}
        ).encode()
        fake_redis.store.update({"catalog:LOC1": "{}", "categories:LOC1": "[]"})

        result = await handler.handle(body, sign(body))

        assert result == {"ok": True, "invalidated": {"catalog": 1, "categories": 1}}
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_other_event_is_ignored(
        self, handler: WebhookHandler, fake_redis: InMemoryRedis
    ) -> None:
        """Test a non-catalog event is acknowledged without invalidating."""
        body = json.dumps({"type": "payment.created", "data": {}}).encode()
        fake_redis.store["catalog:LOC1"] = "{}"

        result = await handler.handle(body, sign(body))

        assert result == {"ok": True, "message": "Event ignored."}
        assert "catalog:LOC1" in fake_redis.store

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", [b"[1, 2, 3]", b"{}", b'"text"', b'{"type": null}', b'{"type": 5}']
    )
    async def test_json_without_event_type_is_ignored(
        self, handler: WebhookHandler, body: bytes
    ) -> None:
        """Test valid JSON without a type is acknowledged and ignored."""
        result = await handler.handle(body, sign(body))

        assert result == {"ok": True, "message": "Event ignored."}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"{not json", b"\xc3("])
    async def test_unparseable_body_raises_500(self, handler: WebhookHandler, body: bytes) -> None:
        """Test a correctly signed but unusable body is a processing failure."""
        with pytest.raises(ApiError) as exc_info:
            await handler.handle(body, sign(body))

        assert exc_info.value.status == 500
        assert exc_info.value.code == "WEBHOOK_ERROR"
        assert exc_info.value.message == "Failed to process event."

    @pytest.mark.asyncio
    async def test_invalidation_failure_raises_500(self) -> None:
        """Test that an unexpected failure while invalidating maps to 500."""
        cache = MagicMock(spec=CacheService)
        cache.invalidate = AsyncMock(side_effect=RuntimeError("boom"))
        handler = WebhookHandler(cache, signature_key="", notification_url=NOTIFICATION_URL)

        with pytest.raises(ApiError) as exc_info:
            await handler.handle(CATALOG_UPDATED, None)

        assert exc_info.value.code == "WEBHOOK_ERROR"

    @pytest.mark.asyncio
    async def test_update_forces_refetch(self, two_page_catalog: list[dict[str, Any]]) -> None:
        """Test that a menu read after a catalog update goes back to Square."""
        redis = InMemoryRedis()
        cache = CacheService(redis)  # type: ignore[arg-type]
        client = ScriptedSquareClient(pages=two_page_catalog)
        catalog = CatalogService(client, cache)  # type: ignore[arg-type]
        handler = WebhookHandler(cache, signature_key=SIGNATURE_KEY, notification_url=NOTIFICATION_URL)

        await catalog.get_menu(location_id="LOC1")
        await catalog.get_categories(location_id="LOC1")
        await catalog.get_menu(location_id="LOC1")
        assert len(client.search_calls) == 4

        await handler.handle(CATALOG_UPDATED, sign(CATALOG_UPDATED))

        await catalog.get_menu(location_id="LOC1")
        assert len(client.search_calls) == 6
        await catalog.get_categories(location_id="LOC1")
        assert len(client.search_calls) == 8
