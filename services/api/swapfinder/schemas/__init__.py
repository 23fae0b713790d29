"""Pydantic schemas for API request/response validation."""

from swapfinder.schemas.common import ErrorDetail, ErrorResponse, error_response, product_not_found
from swapfinder.schemas.swaps import (
    AvailabilityOut,
    ProductOut,
    ProductTypeOut,
    RecipeOut,
    SwapOut,
    SwapsResponse,
    swaps_response,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "error_response",
    "product_not_found",
    "AvailabilityOut",
    "ProductOut",
    "ProductTypeOut",
    "RecipeOut",
    "SwapOut",
    "SwapsResponse",
    "swaps_response",
]
