"""Shared pytest fixtures and configuration for all tests."""

import fnmatch
import os
from typing import Any

import pytest

# main.py builds the real application at import time unless in test mode
os.environ.setdefault("ENVIRONMENT", "test")

from restaurant_menu_service.services.cache_service import CacheService  # noqa: E402


class InMemoryRedis:
    """Minimal stand-in for redis.asyncio.Redis covering what CacheService uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self._scan_snapshot: list[str] = []

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def scan(
        self, cursor: int = 0, match: str | None = None, count: int | None = None
    ) -> tuple[int, list[str]]:
        if int(cursor) == 0:
            self._scan_snapshot = sorted(
                k for k in self.store if fnmatch.fnmatchcase(k, match or "*")
            )
        start = int(cursor)
        end = start + (count or 10)
        batch = self._scan_snapshot[start:end]
        next_cursor = end if end < len(self._scan_snapshot) else 0
        return next_cursor, batch

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def aclose(self) -> None:
        return None


class ScriptedSquareClient:
    """Square client stub serving fixed catalog pages and counting calls.

    Page N (0-based) is requested with cursor ``"page-N"``; the first page
    without a cursor.
    """

    def __init__(
        self,
        pages: list[dict[str, Any]] | None = None,
        locations: dict[str, Any] | None = None,
    ) -> None:
        self.pages = pages or [{}]
        self.locations = locations or {"locations": []}
        self.search_calls: list[str | None] = []
        self.location_calls = 0

    async def search_catalog(
        self,
        object_types: list[str],
        cursor: str | None = None,
        include_related_objects: bool = True,
    ) -> dict[str, Any]:
        self.search_calls.append(cursor)
        index = int(cursor.removeprefix("page-")) if cursor else 0
        return self.pages[index]

    async def list_locations(self) -> dict[str, Any]:
        self.location_calls += 1
        return self.locations


def paginate(
    pages: list[list[dict[str, Any]]],
    related: list[list[dict[str, Any]]] | None = None,
) -> list[dict[str, Any]]:
    """Build search responses chained with ``page-N`` cursors."""
    related = related or [[] for _ in pages]
    responses = []
    for index, objects in enumerate(pages):
        response: dict[str, Any] = {"objects": objects, "related_objects": related[index]}
        if index + 1 < len(pages):
            response["cursor"] = f"page-{index + 1}"
        responses.append(response)
    return responses


def make_item(
    item_id: str,
    name: str,
    category_id: str | None = None,
    image_ids: list[str] | None = None,
    present_at_all: bool | None = True,
    location_ids: list[str] | None = None,
    variations: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a Square ITEM payload."""
    item_data: dict[str, Any] = {"name": name}
    if category_id:
        item_data["categories"] = [{"id": category_id}]
    if image_ids:
        item_data["image_ids"] = image_ids
    item_data["variations"] = (
        variations
        if variations is not None
        else [
            {
                "type": "ITEM_VARIATION",
                "id": f"{item_id}-VAR",
                "item_variation_data": {
                    "name": "Regular",
                    "price_money": {"amount": 350, "currency": "USD"},
                },
            }
        ]
    )

    obj: dict[str, Any] = {"type": "ITEM", "id": item_id, "item_data": item_data}
    if present_at_all is not None:
        obj["present_at_all_locations"] = present_at_all
    if location_ids is not None:
        obj["present_at_location_ids"] = location_ids
    return obj


def make_category(category_id: str, name: str) -> dict[str, Any]:
    """Build a Square CATEGORY payload."""
    return {
        "type": "CATEGORY",
        "id": category_id,
        "present_at_all_locations": True,
        "category_data": {"name": name},
    }


def make_image(image_id: str, url: str) -> dict[str, Any]:
    """Build a Square IMAGE payload."""
    return {"type": "IMAGE", "id": image_id, "image_data": {"url": url}}


@pytest.fixture
def location_id() -> str:
    """Fixture providing a standard test location ID."""
    return "LOC1"


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    """Fixture providing an empty in-memory Redis."""
    return InMemoryRedis()


@pytest.fixture
def cache_service(fake_redis: InMemoryRedis) -> CacheService:
    """Fixture providing a CacheService over the in-memory Redis."""
    return CacheService(redis_client=fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def two_page_catalog() -> list[dict[str, Any]]:
    """Two catalog pages: items A, B and category C1, then item D and category C2.

    A is everywhere and has image I; B is only at LOC2; D is everywhere.
    """
    return paginate(
        [
            [
                make_item("A", "Espresso", category_id="C1", image_ids=["I"]),
                make_item("B", "Secret Latte", category_id="C1", present_at_all=False, location_ids=["LOC2"]),
                make_category("C1", "Coffee"),
            ],
            [
                make_item("D", "Croissant", category_id="C2"),
                make_category("C2", "Pastries"),
            ],
        ],
        related=[[make_image("I", "https://images.example.com/espresso.jpg")], []],
    )


@pytest.fixture
def mock_locations_payload() -> dict[str, Any]:
    """Fixture providing a Square ListLocations response."""
    return {
        "locations": [
            {
                "id": "LOC1",
                "name": "Downtown Cafe",
                "address": {
                    "address_line_1": "123 Main St",
                    "locality": "Brooklyn",
                    "administrative_district_level_1": "NY",
                    "postal_code": "11201",
                    "country": "US",
                },
                "timezone": "America/New_York",
                "status": "ACTIVE",
                "capabilities": ["CREDIT_CARD_PROCESSING"],
                "currency": "USD",
                "country": "US",
                "language_code": "en-US",
                "business_name": "Downtown Cafe LLC",
                "merchant_id": "M123",
                "type": "PHYSICAL",
                "mcc": "7299",
                "created_at": "2024-01-01T00:00:00.000Z",
            },
            {"id": "LOC2", "name": "Closed Bistro", "status": "INACTIVE"},
            {"id": "LOC3", "name": "Pop-up"},
        ]
    }
