"""API routes."""

from fastapi import APIRouter

from swapfinder.routes import admin, swaps

api_router = APIRouter()

# Swap endpoints (product -> healthier alternatives)
api_router.include_router(swaps.router, prefix="/v1/swaps", tags=["swaps"])

# Admin endpoints (taxonomy inspection, cache management)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
