"""Admin endpoints for taxonomy inspection and swap cache management.

These endpoints are intended for manual testing and admin operations.
In production, consider adding authentication (API key or admin token).
"""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from swapfinder.schemas import ErrorResponse, ProductTypeOut, product_not_found
from swapfinder.services.errors import ProductNotFoundError
from swapfinder.services.product_types import PRODUCT_TYPES, ProductType, classify
from swapfinder.services.swaps import get_swap_service

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


class ClassifyResponse(BaseModel):
    """Which product type the classifier picks for a text."""

    text: str
    product_type: ProductTypeOut | None = Field(alias="productType", default=None)

    model_config = {"populate_by_name": True}


class ClearSwapsResponse(BaseModel):
    upc: str
    cleared: bool


def _type_out(product_type: ProductType) -> ProductTypeOut:
    return ProductTypeOut(
        id=product_type.id,
        label=product_type.label,
        must_contain=list(product_type.must_contain),
        exclude=list(product_type.exclude),
        fallback_search_phrase=product_type.fallback_search_phrase,
        external_categories=list(product_type.external_categories),
    )


@router.get("/product-types", response_model=list[ProductTypeOut])
async def list_product_types() -> list[ProductTypeOut]:
    """Taxonomy entries in evaluation order (first match wins)."""
    return [_type_out(t) for t in PRODUCT_TYPES]


@router.get("/classify", response_model=ClassifyResponse)
async def classify_text(
    text: str = Query(
        description="Product name / category text",
        min_length=1,
        max_length=500,
        examples=["Lay's Classic Potato Chips"],
    ),
) -> ClassifyResponse:
    """Run the classifier on free text."""
    product_type = classify(text.lower())
    return ClassifyResponse(
        text=text,
        product_type=_type_out(product_type) if product_type else None,
    )


@router.delete(
    "/products/{upc}/dynamic-swaps",
    response_model=ClearSwapsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def clear_dynamic_swaps(upc: str) -> ClearSwapsResponse | JSONResponse:
    """Drop a product's discovered swap list so the next request rediscovers.

    Editorial swap lists are never touched (cleared=false).
    """
    try:
        cleared = await get_swap_service().clear_dynamic_swaps(upc)
    except ProductNotFoundError:
        return product_not_found(upc)
    logger.info(f"Admin cleared dynamic swaps for {upc}: {cleared}")
    return ClearSwapsResponse(upc=upc, cleared=cleared)
