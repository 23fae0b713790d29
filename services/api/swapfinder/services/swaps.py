"""Swap service: product lookup -> resolver -> enrichment -> recipes.

The production wiring (SQL catalog/availability, Open Food Facts discovery,
estimated scorer) is built once from settings by get_swap_service().
"""

import logging
from datetime import timedelta

from swapfinder.services.availability import AvailabilityAggregator, SqlAvailabilitySources
from swapfinder.services.catalog import CatalogStore, SqlCatalogStore
from swapfinder.services.discovery import DynamicDiscovery
from swapfinder.services.enrichment import ResultEnricher, SwapsResult
from swapfinder.services.errors import ProductNotFoundError
from swapfinder.services.off_client import get_off_client
from swapfinder.services.recipes import RecipeSource, SqlRecipeSource
from swapfinder.services.resolver import CandidateResolver
from swapfinder.services.scoring import EstimatedScorer
from swapfinder.services.swap_cache import SwapCache
from swapfinder.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class SwapService:
    def __init__(
        self,
        catalog: CatalogStore,
        resolver: CandidateResolver,
        enricher: ResultEnricher,
        recipes: RecipeSource,
        *,
        limit: int = 5,
    ):
        self.catalog = catalog
        self.resolver = resolver
        self.enricher = enricher
        self.recipes = recipes
        self.limit = limit

    async def get_swaps_for(self, upc: str) -> SwapsResult:
        """Resolve and enrich swaps for a product.

        Raises:
            ProductNotFoundError: unknown identifier
            SourceUnavailableError: the initial product lookup failed
        """
        product = await self.catalog.get_by_id(upc)
        if product is None:
            raise ProductNotFoundError(upc)

        candidates = await self.resolver.resolve(product, limit=self.limit)
        swaps = await self.enricher.enrich(product, candidates)
        homemade = await self.recipes.for_product(product)

        logger.info(f"Swaps for {upc}: {len(swaps)} swaps, {len(homemade)} recipes")
        return SwapsResult(
            original=self.enricher.rate(product),
            swaps=swaps,
            homemade_alternatives=homemade,
        )

    async def clear_dynamic_swaps(self, upc: str) -> bool:
        """Drop a cached discovery result. Raises ProductNotFoundError."""
        if await self.catalog.get_by_id(upc) is None:
            raise ProductNotFoundError(upc)
        cleared = await self.catalog.clear_dynamic_swaps(upc)
        if cleared:
            logger.info(f"Cleared dynamic swaps for {upc}")
        return cleared


def build_swap_service() -> SwapService:
    settings = get_settings()
    catalog = SqlCatalogStore()
    cache = SwapCache(
        catalog,
        ttl=timedelta(hours=settings.discovery_cache_hours),
        write_mode=settings.swap_cache_write_mode,
    )
    discovery = DynamicDiscovery(
        catalog,
        get_off_client(),
        EstimatedScorer(),
        cache,
        timeout_seconds=settings.discovery_timeout_seconds,
        min_score=settings.discovery_min_score,
    )
    resolver = CandidateResolver(
        catalog,
        cache,
        discovery,
        min_score=settings.min_swap_score,
        discovery_enabled=settings.discovery_enabled,
    )
    aggregator = AvailabilityAggregator(
        SqlAvailabilitySources(),
        cap=settings.availability_cap,
        freshness_days=settings.community_freshness_days,
    )
    return SwapService(
        catalog,
        resolver,
        ResultEnricher(aggregator, availability_cap=settings.availability_cap),
        SqlRecipeSource(),
        limit=settings.swap_limit,
    )


# Singleton service instance (keeps background cache writes alive)
_service: SwapService | None = None


def get_swap_service() -> SwapService:
    global _service
    if _service is None:
        _service = build_swap_service()
    return _service


async def shutdown_swap_service() -> None:
    """Wait for pending cache writes."""
    global _service
    if _service is not None:
        await _service.resolver.cache.drain()
        _service = None
