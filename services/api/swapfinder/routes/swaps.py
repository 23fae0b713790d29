"""Swap endpoints.

GET /v1/swaps/for/{upc} - Healthier alternatives for a product, with
availability and homemade alternatives.

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Path
from fastapi.responses import JSONResponse

from swapfinder.schemas import ErrorResponse, SwapsResponse, product_not_found, swaps_response
from swapfinder.services.errors import ProductNotFoundError
from swapfinder.services.swaps import get_swap_service

router = APIRouter()


@router.get(
    "/for/{upc}",
    response_model=SwapsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_swaps_for(
    upc: str = Path(
        description="Product identifier (barcode)",
        min_length=1,
        max_length=20,
        examples=["0038000138416"],
    ),
) -> SwapsResponse | JSONResponse:
    """Get up to 5 swaps for a product.

    Returns:
        SwapsResponse with original (rated), swaps (<=5, each with <=5 stores)
        and homemadeAlternatives.
    """
    try:
        result = await get_swap_service().get_swaps_for(upc)
    except ProductNotFoundError:
        return product_not_found(upc)
    return swaps_response(result)
