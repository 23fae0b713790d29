"""Schemas for the swaps endpoint (/v1/swaps/for/{upc})."""

from datetime import datetime

from pydantic import BaseModel, Field

from swapfinder.services.enrichment import RatedProduct, SwapCandidate, SwapsResult
from swapfinder.services.availability import AvailabilityRecord
from swapfinder.services.recipes import RecipeSummary


class ProductOut(BaseModel):
    """Catalog product with its rating band."""

    upc: str
    name: str
    brand: str | None = None
    category: str | None = None
    subcategory: str | None = None
    image_url: str | None = Field(alias="imageUrl", default=None)
    total_score: int | None = Field(alias="totalScore", default=None, ge=0, le=100)
    typical_price: float | None = Field(alias="typicalPrice", default=None)
    is_organic: bool = Field(alias="isOrganic", default=False)
    rating: str
    emoji: str
    color: str

    model_config = {"populate_by_name": True}


class AvailabilityOut(BaseModel):
    """One store where a swap can be bought."""

    store_name: str = Field(alias="storeName")
    source: str
    price: float | None = None
    price_text: str | None = Field(alias="priceText", default=None)
    verified_count: int | None = Field(alias="verifiedCount", default=None)
    as_of: datetime | None = Field(alias="asOf", default=None)
    disclaimer: str | None = None
    address: str | None = None
    aisle: str | None = None

    model_config = {"populate_by_name": True}


class SwapOut(ProductOut):
    """A swap candidate."""

    score_improvement: int = Field(alias="scoreImprovement")
    savings_potential: float | None = Field(alias="savingsPotential", default=None)
    availability: list[AvailabilityOut] = Field(default_factory=list, max_length=5)


class RecipeOut(BaseModel):
    """Homemade alternative."""

    id: int
    name: str
    description: str | None = None
    replaces_category: str | None = Field(alias="replacesCategory", default=None)
    prep_minutes: int | None = Field(alias="prepMinutes", default=None)

    model_config = {"populate_by_name": True}


class SwapsResponse(BaseModel):
    """Response for GET /v1/swaps/for/{upc}."""

    original: ProductOut
    swaps: list[SwapOut] = Field(max_length=5)
    homemade_alternatives: list[RecipeOut] = Field(alias="homemadeAlternatives", default_factory=list)

    model_config = {"populate_by_name": True}


class ProductTypeOut(BaseModel):
    """One product type taxonomy entry (admin)."""

    id: str
    label: str
    must_contain: list[str] = Field(alias="mustContain")
    exclude: list[str]
    fallback_search_phrase: str = Field(alias="fallbackSearchPhrase")
    external_categories: list[str] = Field(alias="externalCategories")

    model_config = {"populate_by_name": True}


def _product_fields(rated: RatedProduct | SwapCandidate) -> dict:
    p = rated.product
    return {
        "upc": p.upc,
        "name": p.name,
        "brand": p.brand,
        "category": p.category,
        "subcategory": p.subcategory,
        "image_url": p.image_url,
        "total_score": p.score,
        "typical_price": p.typical_price,
        "is_organic": p.is_organic,
        "rating": rated.rating.rating,
        "emoji": rated.rating.emoji,
        "color": rated.rating.color,
    }


def availability_out(record: AvailabilityRecord) -> AvailabilityOut:
    return AvailabilityOut(
        store_name=record.store_name,
        source=record.source_tier.value,
        price=record.price,
        price_text=record.price_text,
        verified_count=record.corroboration_count,
        as_of=record.as_of,
        disclaimer=record.disclaimer,
        address=record.address,
        aisle=record.aisle,
    )


def recipe_out(recipe: RecipeSummary) -> RecipeOut:
    return RecipeOut(
        id=recipe.id,
        name=recipe.name,
        description=recipe.description,
        replaces_category=recipe.replaces_category,
        prep_minutes=recipe.prep_minutes,
    )


def swaps_response(result: SwapsResult) -> SwapsResponse:
    """Build the API response from a service result."""
    return SwapsResponse(
        original=ProductOut(**_product_fields(result.original)),
        swaps=[
            SwapOut(
                **_product_fields(s),
                score_improvement=s.score_improvement,
                savings_potential=s.savings_potential,
                availability=[availability_out(a) for a in s.availability],
            )
            for s in result.swaps
        ],
        homemade_alternatives=[recipe_out(r) for r in result.homemade_alternatives],
    )
