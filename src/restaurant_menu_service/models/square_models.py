"""Square API payload models.

These models validate every upstream payload before it is used. They are
tolerant: list fields default to empty and optional scalars
default to None, so an object missing optional data still parses. Only
structurally broken payloads (e.g. a catalog object without ``id``) fail.
"""

import logging
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import BaseModel, Discriminator, Field, Tag, ValidationError

from restaurant_menu_service.errors import ApiError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


# -- Locations --


class SquareAddress(BaseModel):
    """Postal address attached to a Square location."""

    address_line_1: str | None = None
    locality: str | None = None
    administrative_district_level_1: str | None = None
    postal_code: str | None = None
    country: str | None = None


class SquareLocation(BaseModel):
    """A Square business location."""

    id: str
    name: str
    address: SquareAddress | None = None
    timezone: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    status: Literal["ACTIVE", "INACTIVE"] = "ACTIVE"
    created_at: str | None = None
    merchant_id: str | None = None
    country: str | None = None
    language_code: str | None = None
    currency: str | None = None
    business_name: str | None = None
    type: str | None = None
    business_hours: dict[str, Any] | None = None
    mcc: str | None = None


class ListLocationsResponse(BaseModel):
    """Response of ``GET /locations``."""

    locations: list[SquareLocation] = Field(default_factory=list)


# -- Catalog --


class Money(BaseModel):
    """Amount in minor currency units."""

    amount: int
    currency: str = "USD"


class ItemVariationData(BaseModel):
    """Variation payload; name defaults to Regular when Square omits it."""

    name: str = "Regular"
    price_money: Money | None = None


class ItemVariation(BaseModel):
    """An ``ITEM_VARIATION`` embedded inside an item."""

    type: str
    id: str
    item_variation_data: ItemVariationData | None = None


class CategoryReference(BaseModel):
    """Reference from an item to one of its categories."""

    id: str


class ItemData(BaseModel):
    """Item-specific payload."""

    name: str | None = None
    description: str | None = None
    description_plaintext: str | None = None
    category_id: str | None = None
    categories: list[CategoryReference] = Field(default_factory=list)
    image_ids: list[str] = Field(default_factory=list)
    variations: list[ItemVariation] = Field(default_factory=list)


class CategoryData(BaseModel):
    """Category-specific payload."""

    name: str | None = None


class ImageData(BaseModel):
    """Image-specific payload."""

    url: str | None = None


class CatalogObjectBase(BaseModel):
    """Fields shared by every catalog object kind."""

    id: str
    present_at_all_locations: bool | None = None
    present_at_location_ids: list[str] = Field(default_factory=list)

    def is_present_at(self, location_id: str) -> bool:
        """Check whether this object is available at a location.

        Args:
            location_id: The Square location ID

        Returns:
            bool: True if present at all locations or explicitly at this one
        """
        if self.present_at_all_locations:
            return True
        return location_id in self.present_at_location_ids


class CatalogItem(CatalogObjectBase):
    """``ITEM`` catalog object."""

    type: Literal["ITEM"]
    item_data: ItemData = Field(default_factory=ItemData)


class CatalogCategory(CatalogObjectBase):
    """``CATEGORY`` catalog object."""

    type: Literal["CATEGORY"]
    category_data: CategoryData = Field(default_factory=CategoryData)


class CatalogImage(CatalogObjectBase):
    """``IMAGE`` catalog object."""

    type: Literal["IMAGE"]
    image_data: ImageData = Field(default_factory=ImageData)


class CatalogOther(CatalogObjectBase):
    """Any other kind (TAX, MODIFIER_LIST, ...). Carried but never used."""

    type: str


KNOWN_CATALOG_TYPES = frozenset({"ITEM", "CATEGORY", "IMAGE"})


def _catalog_object_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in KNOWN_CATALOG_TYPES else "OTHER"


CatalogObject = Annotated[
    Union[
        Annotated[CatalogItem, Tag("ITEM")],
        Annotated[CatalogCategory, Tag("CATEGORY")],
        Annotated[CatalogImage, Tag("IMAGE")],
        Annotated[CatalogOther, Tag("OTHER")],
    ],
    Discriminator(_catalog_object_tag),
]


class SearchCatalogResponse(BaseModel):
    """One page of ``POST /catalog/search``."""

    objects: list[CatalogObject] = Field(default_factory=list)
    related_objects: list[CatalogObject] = Field(default_factory=list)
    cursor: str | None = None


def validate_upstream(schema: type[SchemaT], payload: Any, source: str) -> SchemaT:
    """Validate a raw Square payload against a schema.

    Args:
        schema: Pydantic model describing the expected shape
        payload: Parsed JSON returned by Square
        source: Name of the Square API for the error message (e.g. "Catalog")

    Returns:
        The validated, defaulted model

    Raises:
        ApiError: 502 INVALID_UPSTREAM_RESPONSE if the payload does not match
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Square {source} API returned malformed data: {e.error_count()} errors")
        raise ApiError(
            502,
            "INVALID_UPSTREAM_RESPONSE",
            f"Malformed data from Square {source} API.",
        ) from e
