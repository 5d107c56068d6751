"""Client-facing menu models.

These are the shapes the API returns, not the raw Square shapes (those live in
square_models). Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationAddress(ApiModel):
    """Postal address of a location; every part is optional."""

    address_line1: str | None = Field(None, alias="addressLine1")
    locality: str | None = None
    administrative_district_level1: str | None = Field(None, alias="administrativeDistrictLevel1")
    postal_code: str | None = None
    country: str | None = None


class Location(ApiModel):
    """A restaurant location customers can browse."""

    id: str = Field(..., description="Square location identifier")
    name: str = Field(..., description="Display name")
    address: LocationAddress | None = Field(None, description="Postal address")
    timezone: str = ""
    status: Literal["ACTIVE", "INACTIVE"] = "ACTIVE"
    capabilities: list[str] = Field(default_factory=list)
    currency: str = "USD"
    country: str = ""
    language_code: str = ""
    business_name: str = ""
    merchant_id: str = ""
    type: str = ""
    mcc: str = ""
    created_at: str = ""


class Variation(ApiModel):
    """A purchasable variation of a menu item."""

    id: str
    name: str = "Regular"
    price_cents: int = Field(0, description="Price in minor currency units")
    price_formatted: str = Field(..., description="Price formatted for display")


class MenuItem(ApiModel):
    """Flattened menu item scoped to one location."""

    id: str
    name: str
    description: str = ""
    category: str = Field(..., description="Resolved category name")
    category_id: str = Field("", description="Resolved category ID, empty when uncategorized")
    image_url: str | None = Field(None, description="Resolved image URL")
    variations: list[Variation] = Field(default_factory=list)


class Category(ApiModel):
    """Menu category with the number of items available at a location."""

    id: str
    name: str
    item_count: int = Field(..., ge=0)


class CatalogResponse(ApiModel):
    """Menu for one location."""

    categories: list[str] = Field(default_factory=list, description="Category names in menu order")
    items: list[MenuItem] = Field(default_factory=list)


class ErrorBody(BaseModel):
    """Inner part of the error envelope."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every route."""

    error: ErrorBody
