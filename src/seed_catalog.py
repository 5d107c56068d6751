"""Populate a Square sandbox catalog with a sample café menu.

Run with ``python src/seed_catalog.py``. Requires SQUARE_ACCESS_TOKEN; uses
SQUARE_ENVIRONMENT to pick sandbox (default) or production. Existing ITEM,
CATEGORY and IMAGE objects are deleted first so the menu starts fresh, and
each created item then gets a product photo from ITEM_PHOTOS.
"""

import asyncio
import logging
import sys
import uuid
from typing import Any

import httpx

from restaurant_menu_service.config import Settings
from restaurant_menu_service.errors import ApiError
from restaurant_menu_service.observability import configure_logging
from restaurant_menu_service.services.square_client import SquareClient

logger = logging.getLogger(__name__)

CLEAN_OBJECT_TYPES = ["ITEM", "CATEGORY", "IMAGE"]

# category name -> [(item name, description, [(variation name, cents), ...])]
SAMPLE_MENU: dict[str, list[tuple[str, str, list[tuple[str, int]]]]] = {
    "Coffee": [
        ("Espresso", "A bold, concentrated shot of rich Italian-style coffee.",
         [("Single", 350), ("Double", 450)]),
        ("Cappuccino", "Espresso topped with velvety steamed milk foam.",
         [("Small", 450), ("Large", 550)]),
        ("Cold Brew", "Slow-steeped for 18 hours, smooth and naturally sweet.",
         [("Regular", 500), ("Large", 600)]),
        ("Oat Milk Latte", "Espresso with creamy steamed oat milk.",
         [("Small", 525), ("Large", 625)]),
    ],
    "Pastries": [
        ("Butter Croissant", "Flaky, golden layers of French butter pastry.", [("Regular", 400)]),
        ("Blueberry Muffin", "Bursting with wild blueberries and a crumb topping.", [("Regular", 375)]),
        ("Chocolate Babka", "Swirled brioche with dark chocolate ganache.", [("Slice", 450)]),
    ],
    "Sandwiches": [
        ("Turkey Avocado Club", "Roast turkey, avocado, bacon and tomato on sourdough.",
         [("Half", 850), ("Whole", 1250)]),
        ("Caprese Panini", "Fresh mozzarella, tomato and basil pesto, pressed hot.",
         [("Regular", 1050)]),
    ],
    "Smoothies": [
        ("Tropical Mango", "Mango, pineapple and coconut milk.", [("Regular", 650), ("Large", 775)]),
        ("Berry Blast", "Strawberry, blueberry, banana and yogurt.", [("Regular", 650), ("Large", 775)]),
        ("Green Detox", "Spinach, kale, apple and ginger.", [("Regular", 700)]),
    ],
}

PHOTO_DOWNLOAD_TIMEOUT_SECONDS = 15.0

# item name -> product photo uploaded after the items are created
ITEM_PHOTOS: dict[str, str] = {
    "Espresso": "https://images.unsplash.com/photo-1510707577719-ae7c14805e3a?w=400&h=300&fit=crop&q=80",
    "Cappuccino": "https://images.unsplash.com/photo-1572442388796-11668a67e53d?w=400&h=300&fit=crop&q=80",
    "Cold Brew": "https://images.unsplash.com/photo-1461023058943-07fcbe16d735?w=400&h=300&fit=crop&q=80",
    "Oat Milk Latte": "https://images.unsplash.com/photo-1534778101976-62847782c213?w=400&h=300&fit=crop&q=80",
    "Butter Croissant": "https://images.unsplash.com/photo-1530610476181-d83430b64dcd?w=400&h=300&fit=crop&q=80",
    "Blueberry Muffin": "https://images.unsplash.com/photo-1607958996333-41aef7caefaa?w=400&h=300&fit=crop&q=80",
    "Chocolate Babka": "https://images.unsplash.com/photo-1509365390695-33aee754301f?w=400&h=300&fit=crop&q=80",
    "Turkey Avocado Club": "https://images.unsplash.com/photo-1528736235302-52922df5c122?w=400&h=300&fit=crop&q=80",
    "Caprese Panini": "https://images.unsplash.com/photo-1528735602780-2552fd46c7af?w=400&h=300&fit=crop&q=80",
    "Tropical Mango": "https://images.unsplash.com/photo-1623065422902-30a2d299bbe4?w=400&h=300&fit=crop&q=80",
    "Berry Blast": "https://images.unsplash.com/photo-1553530666-ba11a7da3888?w=400&h=300&fit=crop&q=80",
    "Green Detox": "https://images.unsplash.com/photo-1610970881699-44a5587cabec?w=400&h=300&fit=crop&q=80",
}


def temp_id() -> str:
    """Return a client-side temporary ID (Square replaces '#' IDs on upsert)."""
    return f"#{uuid.uuid4().hex[:8]}"


def build_seed_objects(
    menu: dict[str, list[tuple[str, str, list[tuple[str, int]]]]] = SAMPLE_MENU,
    currency: str = "USD",
) -> list[dict[str, Any]]:
    """Build catalog objects for a menu.

    Categories come first so items can reference their temporary IDs.

    Args:
        menu: Category name -> items, as in SAMPLE_MENU
        currency: Currency for every variation price

    Returns:
        List of Square catalog object payloads
    """
    categories: list[dict[str, Any]] = []
    items: list[dict[str, Any]] = []

    for category_name, menu_items in menu.items():
        category_id = temp_id()
        categories.append(
            {"type": "CATEGORY", "id": category_id, "category_data": {"name": category_name}}
        )

        for name, description, variations in menu_items:
            items.append(
                {
                    "type": "ITEM",
                    "id": temp_id(),
                    "present_at_all_locations": True,
                    "item_data": {
                        "name": name,
                        "description": description,
                        "categories": [{"id": category_id}],
                        "variations": [
                            {
                                "type": "ITEM_VARIATION",
                                "id": temp_id(),
                                "item_variation_data": {
                                    "name": variation_name,
                                    "pricing_type": "FIXED_PRICING",
                                    "price_money": {"amount": cents, "currency": currency},
                                },
                            }
                            for variation_name, cents in variations
                        ],
                    },
                }
            )

    return categories + items


async def clean_catalog(client: SquareClient) -> int:
    """Delete every ITEM, CATEGORY and IMAGE object.

    Args:
        client: Square client

    Returns:
        Number of objects deleted
    """
    object_ids: list[str] = []

    for object_type in CLEAN_OBJECT_TYPES:
        cursor: str | None = None
        while True:
            data = await client.search_catalog(
                [object_type], cursor=cursor, include_related_objects=False
            )
            object_ids.extend(obj["id"] for obj in data.get("objects", []))
            cursor = data.get("cursor")
            if not cursor:
                break

    if not object_ids:
        logger.info("Nothing to clean")
        return 0

    await client.batch_delete(object_ids)
    logger.info(f"Deleted {len(object_ids)} objects")
    return len(object_ids)


async def download_photo(url: str) -> bytes:
    """Fetch a product photo.

    Raises:
        httpx.HTTPError: If the photo cannot be downloaded
    """
    async with httpx.AsyncClient(
        timeout=PHOTO_DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True
    ) as http:
        response = await http.get(url)
        response.raise_for_status()
        return response.content


async def upload_images(client: SquareClient, items: list[dict[str, Any]]) -> int:
    """Attach a photo from ITEM_PHOTOS to each created item.

    A failed download or upload is logged and the remaining items continue.

    Args:
        client: Square client
        items: ITEM objects as returned by batch upsert (with real IDs)

    Returns:
        Number of images uploaded
    """
    uploaded = 0

    for item in items:
        name = (item.get("item_data") or {}).get("name", "")
        photo_url = ITEM_PHOTOS.get(name)
        if not photo_url:
            continue

        try:
            photo = await download_photo(photo_url)
            await client.upload_image(
                object_id=item["id"],
                image=photo,
                filename=f"{'-'.join(name.lower().split())}.jpg",
                caption=name,
                idempotency_key=str(uuid.uuid4()),
            )
        except (httpx.HTTPError, ApiError) as e:
            logger.warning(f"Image upload failed for {name}: {e}")
            continue

        uploaded += 1
        logger.info(f"Uploaded image for {name}")

    logger.info(f"Uploaded {uploaded}/{len(items)} images")
    return uploaded


async def seed(client: SquareClient) -> int:
    """Replace the catalog with the sample menu and upload item photos.

    Args:
        client: Square client

    Returns:
        Number of objects Square reports as created
    """
    await clean_catalog(client)

    objects = build_seed_objects()
    data = await client.batch_upsert([{"objects": objects}], idempotency_key=str(uuid.uuid4()))

    created_objects = data.get("objects", [])
    logger.info(f"Created {len(created_objects)} catalog objects")

    items = [obj for obj in created_objects if obj.get("type") == "ITEM"]
    await upload_images(client, items)
    return len(created_objects)


def main() -> int:
    """Seed the configured Square environment.

    Returns:
        Process exit code
    """
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if not settings.square_access_token:
        logger.error("Missing SQUARE_ACCESS_TOKEN")
        return 1

    client = SquareClient(access_token=settings.square_access_token, base_url=settings.square_base_url)
    logger.info(f"Seeding catalog at {client.base_url}")

    try:
        asyncio.run(seed(client))
    except ApiError as e:
        logger.error(f"Seeding failed: {e.code} - {e.message}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
