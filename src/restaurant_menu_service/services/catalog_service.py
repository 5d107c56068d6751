"""Catalog aggregation: Square catalog pages in, location-scoped menus out."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from restaurant_menu_service.errors import ApiError
from restaurant_menu_service.formatting import format_price
from restaurant_menu_service.models.menu_models import (
    CatalogResponse,
    Category,
    Location,
    LocationAddress,
    MenuItem,
    Variation,
)
from restaurant_menu_service.models.square_models import (
    CatalogCategory,
    CatalogImage,
    CatalogItem,
    CatalogObject,
    ItemVariation,
    ListLocationsResponse,
    SearchCatalogResponse,
    SquareLocation,
    validate_upstream,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import record_catalog_page
from restaurant_menu_service.services.cache_service import CacheService
from restaurant_menu_service.services.square_client import SquareClient

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 300
LOCATIONS_CACHE_KEY = "locations"
CATALOG_CACHE_PREFIX = "catalog"
CATEGORIES_CACHE_PREFIX = "categories"

SEARCH_OBJECT_TYPES = ["ITEM", "CATEGORY"]

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_ID = "uncategorized"
UNTITLED_ITEM_NAME = "Untitled"

T = TypeVar("T")

LOCATIONS_ADAPTER = TypeAdapter(list[Location])
CATALOG_ADAPTER = TypeAdapter(CatalogResponse)
CATEGORIES_ADAPTER = TypeAdapter(list[Category])


@dataclass
class CatalogSnapshot:
    """All catalog search pages merged together.

    Attributes:
        objects: Primary search results, in page order
        related_objects: Related objects plus primary objects, used for lookups
    """

    objects: list[CatalogObject] = field(default_factory=list)
    related_objects: list[CatalogObject] = field(default_factory=list)

    def add_page(self, page: SearchCatalogResponse) -> None:
        self.objects.extend(page.objects)
        self.related_objects.extend(page.related_objects)
        self.related_objects.extend(page.objects)

    def items_at(self, location_id: str) -> list[CatalogItem]:
        """Return ITEM objects available at a location, in catalog order."""
        return [
            obj
            for obj in self.objects
            if isinstance(obj, CatalogItem) and obj.is_present_at(location_id)
        ]

    def build_lookups(self) -> tuple[dict[str, str], dict[str, str]]:
        """Index related objects by ID.

        Presence is not checked here: a category or image scoped to other
        locations still resolves.

        Returns:
            Tuple of (category id -> name, image id -> url)
        """
        category_names: dict[str, str] = {}
        image_urls: dict[str, str] = {}

        for obj in self.related_objects:
            match obj:
                case CatalogCategory(category_data=data) if data.name:
                    category_names[obj.id] = data.name
                case CatalogImage(image_data=data) if data.url:
                    image_urls[obj.id] = data.url
                case _:
                    pass

        return category_names, image_urls


def resolve_category_id(item: CatalogItem) -> str | None:
    """Pick the item's category: first listed category, else the legacy field."""
    if item.item_data.categories:
        return item.item_data.categories[0].id
    return item.item_data.category_id or None


def resolve_image_url(item: CatalogItem, image_urls: dict[str, str]) -> str | None:
    """Return the URL of the first image ID that resolves, or None."""
    for image_id in item.item_data.image_ids:
        if image_id in image_urls:
            return image_urls[image_id]
    return None


def to_variation(variation: ItemVariation) -> Variation:
    data = variation.item_variation_data
    money = data.price_money if data else None
    price_cents = money.amount if money else 0

    return Variation(
        id=variation.id,
        name=data.name if data else "Regular",
        price_cents=price_cents,
        price_formatted=format_price(price_cents, money.currency if money else None),
    )


def to_menu_item(
    item: CatalogItem,
    category_names: dict[str, str],
    image_urls: dict[str, str],
) -> MenuItem:
    """Flatten a Square item into the client-facing MenuItem shape.

    Args:
        item: Square ITEM object
        category_names: Category id -> name lookup
        image_urls: Image id -> URL lookup

    Returns:
        MenuItem with category and image resolved (or defaulted)
    """
    data = item.item_data
    category_id = resolve_category_id(item) or ""

    return MenuItem(
        id=item.id,
        name=data.name or UNTITLED_ITEM_NAME,
        description=data.description_plaintext or data.description or "",
        category=category_names.get(category_id, UNCATEGORIZED_NAME),
        category_id=category_id,
        image_url=resolve_image_url(item, image_urls),
        variations=[to_variation(v) for v in data.variations],
    )


def to_location(location: SquareLocation) -> Location:
    address = location.address
    return Location(
        id=location.id,
        name=location.name,
        address=(
            LocationAddress(
                address_line1=address.address_line_1,
                locality=address.locality,
                administrative_district_level1=address.administrative_district_level_1,
                postal_code=address.postal_code,
                country=address.country,
            )
            if address
            else None
        ),
        timezone=location.timezone or "",
        status=location.status,
        capabilities=location.capabilities,
        currency=location.currency or "USD",
        country=location.country or "",
        language_code=location.language_code or "",
        business_name=location.business_name or location.name,
        merchant_id=location.merchant_id or "",
        type=location.type or "",
        mcc=location.mcc or "",
        created_at=location.created_at or "",
    )


def _name_sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


class CatalogService:
    """Builds location-scoped menus and category summaries from the Square catalog.

    Results are cached per location. Each cache miss walks every page of the
    catalog search endpoint sequentially, so concurrent misses for the same
    location each fetch independently; the computation is idempotent.
    """

    def __init__(
        self,
        square_client: SquareClient,
        cache_service: CacheService,
        cache_ttl_seconds: int = CACHE_TTL_SECONDS,
    ) -> None:
        """Initialize the CatalogService.

        Args:
            square_client: Client for the Square API
            cache_service: Response cache
            cache_ttl_seconds: TTL applied to cached results
        """
        self.square_client = square_client
        self.cache_service = cache_service
        self.cache_ttl_seconds = cache_ttl_seconds

    @traced("catalog.get_locations")
    async def get_locations(self) -> list[Location]:
        """List active locations.

        Returns:
            Active locations in Square's order
        """
        cached = await self._read_cache(LOCATIONS_CACHE_KEY, LOCATIONS_ADAPTER)
        if cached is not None:
            return cached

        payload = await self.square_client.list_locations()
        parsed = validate_upstream(ListLocationsResponse, payload, "Locations")

        locations = [to_location(loc) for loc in parsed.locations if loc.status == "ACTIVE"]

        await self.cache_service.set(
            LOCATIONS_CACHE_KEY,
            [loc.model_dump(mode="json", by_alias=True) for loc in locations],
            self.cache_ttl_seconds,
        )
        return locations

    @traced("catalog.get_menu")
    async def get_menu(self, location_id: str | None) -> CatalogResponse:
        """Build the menu for one location.

        Args:
            location_id: Square location ID

        Returns:
            CatalogResponse with items sorted by category name and the
            distinct category names in that order

        Raises:
            ApiError: 400 if location_id is missing, 502 if Square returns
                malformed data, or the mapped Square error
        """
        location_id = self._require_location(location_id)
        cache_key = f"{CATALOG_CACHE_PREFIX}:{location_id}"

        cached_menu = await self._read_cache(cache_key, CATALOG_ADAPTER)
        if cached_menu is not None:
            return cached_menu

        snapshot = await self.fetch_catalog()
        category_names, image_urls = snapshot.build_lookups()

        items = [
            to_menu_item(item, category_names, image_urls)
            for item in snapshot.items_at(location_id)
        ]
        items.sort(key=lambda i: _name_sort_key(i.category))
        categories = list(dict.fromkeys(i.category for i in items))

        result = CatalogResponse(categories=categories, items=items)
        logger.info(f"Built menu for location {location_id}: {len(items)} items")

        await self.cache_service.set(
            cache_key, result.model_dump(mode="json", by_alias=True), self.cache_ttl_seconds
        )
        return result

    @traced("catalog.get_categories")
    async def get_categories(self, location_id: str | None) -> list[Category]:
        """Count the items available at a location per category.

        Args:
            location_id: Square location ID

        Returns:
            Categories sorted by name

        Raises:
            ApiError: 400 if location_id is missing, 502 if Square returns
                malformed data, or the mapped Square error
        """
        location_id = self._require_location(location_id)
        cache_key = f"{CATEGORIES_CACHE_PREFIX}:{location_id}"

        cached_categories = await self._read_cache(cache_key, CATEGORIES_ADAPTER)
        if cached_categories is not None:
            return cached_categories

        snapshot = await self.fetch_catalog()
        category_names, _ = snapshot.build_lookups()

        counts = Counter(
            resolve_category_id(item) or UNCATEGORIZED_ID
            for item in snapshot.items_at(location_id)
        )
        categories = [
            Category(
                id=category_id,
                name=category_names.get(category_id, UNCATEGORIZED_NAME),
                item_count=count,
            )
            for category_id, count in counts.items()
        ]
        categories.sort(key=lambda c: _name_sort_key(c.name))

        await self.cache_service.set(
            cache_key,
            [c.model_dump(mode="json", by_alias=True) for c in categories],
            self.cache_ttl_seconds,
        )
        return categories

    async def fetch_catalog(self) -> CatalogSnapshot:
        """Walk every page of the catalog search endpoint.

        Pages are requested one at a time because each cursor comes from the
        previous response. A malformed page aborts the walk and nothing
        fetched so far is returned.

        Returns:
            CatalogSnapshot with all pages merged

        Raises:
            ApiError: 502 on a malformed page, or the mapped Square error
        """
        snapshot = CatalogSnapshot()
        cursor: str | None = None
        pages = 0

        while True:
            payload = await self.square_client.search_catalog(SEARCH_OBJECT_TYPES, cursor=cursor)
            page = validate_upstream(SearchCatalogResponse, payload, "Catalog")
            snapshot.add_page(page)
            record_catalog_page()
            pages += 1

            cursor = page.cursor
            if not cursor:
                break

        logger.info(f"Fetched {len(snapshot.objects)} catalog objects across {pages} pages")
        return snapshot

    @staticmethod
    def _require_location(location_id: str | None) -> str:
        if not location_id:
            raise ApiError(400, "MISSING_PARAM", "location_id is required.")
        return location_id

    async def _read_cache(self, key: str, adapter: TypeAdapter[T]) -> T | None:
        """Return a cached value parsed with ``adapter``, or None.

        An entry that no longer matches the response models (e.g. written
        before a schema change) is treated as a miss and gets overwritten.
        """
        cached = await self.cache_service.get(key)
        if cached is None:
            return None

        try:
            return adapter.validate_python(cached)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e.error_count()} errors")
            return None
