"""Candidate resolver: tiered swap matching.

Tiers run in strict order; the first tier with a non-empty, filtered result wins:
1. Curated direct: the product's own swap list (editorial, or fresh dynamic)
2. Sibling-name curated: the swap list of a catalog row with a similar name
3. Type-classified: subcategory -> full-text -> category, all type-filtered
4. Dynamic discovery (external search, written back to the swap cache)

Returning nothing is preferred over returning a loose match: no tier widens
its filter. A tier whose backing store fails counts as empty.
"""

import logging
from collections.abc import Sequence

from swapfinder.services.catalog import CatalogProduct, CatalogStore
from swapfinder.services.dedup import canonical_name_tokens, distinctive_name_token
from swapfinder.services.discovery import Discovery
from swapfinder.services.errors import DiscoveryError, SourceUnavailableError
from swapfinder.services.product_types import ProductType, classify, matches_type
from swapfinder.services.swap_cache import SwapCache

logger = logging.getLogger("uvicorn.error")

DEFAULT_LIMIT = 5
# Rows fetched per tier-3 query before type filtering
_TYPE_FETCH_FACTOR = 4
# Name-token matches fetched before ranking by specificity, and how many are tried
_SIBLING_FETCH = 50
_MAX_SIBLINGS = 10


def finalize(candidates: Sequence[CatalogProduct], exclude_id: str, limit: int) -> list[CatalogProduct]:
    """Drop self and unscored entries, dedup by identifier, cap at `limit`."""
    seen: set[str] = set()
    out: list[CatalogProduct] = []
    for c in candidates:
        if c.upc == exclude_id or c.score is None or c.upc in seen:
            continue
        seen.add(c.upc)
        out.append(c)
        if len(out) >= limit:
            break
    return out


class CandidateResolver:
    def __init__(
        self,
        catalog: CatalogStore,
        cache: SwapCache,
        discovery: Discovery | None = None,
        *,
        min_score: int = 40,
        discovery_enabled: bool = True,
    ):
        self.catalog = catalog
        self.cache = cache
        self.discovery = discovery
        self.min_score = min_score
        self.discovery_enabled = discovery_enabled and discovery is not None

    async def resolve(self, product: CatalogProduct, limit: int = DEFAULT_LIMIT) -> list[CatalogProduct]:
        """Up to `limit` scored alternatives for `product` (never `product` itself)."""
        tiers = (
            ("curated", self.curated_direct),
            ("sibling", self.sibling_curated),
            ("type", self.type_classified),
        )
        for tier_name, tier in tiers:
            try:
                found = finalize(await tier(product, limit), product.upc, limit)
            except SourceUnavailableError as e:
                logger.warning(f"Swap tier '{tier_name}' unavailable for {product.upc}: {e}")
                continue
            if found:
                logger.info(f"Swaps for {product.upc} resolved by tier '{tier_name}' ({len(found)})")
                return found

        if not self.discovery_enabled:
            return []

        try:
            found = await self.discover(product, limit)
        except (DiscoveryError, SourceUnavailableError) as e:
            logger.error(f"Swap discovery failed for {product.upc}, returning no swaps: {e}")
            return []
        found = finalize(found, product.upc, limit)
        logger.info(f"Swaps for {product.upc} resolved by tier 'discovery' ({len(found)})")
        return found

    async def curated_direct(self, product: CatalogProduct, limit: int) -> list[CatalogProduct]:
        entry = await self.cache.get(product.upc)
        if entry is None:
            return []
        return await self.catalog.get_many(entry.upcs)

    async def sibling_curated(self, product: CatalogProduct, limit: int) -> list[CatalogProduct]:
        """Borrow the swap list of a near-duplicate catalog row.

        Heuristic: the catalog can hold several rows for one real product
        under different identifiers/spellings, and only some carry swaps.
        """
        token = distinctive_name_token(product.name)
        if token is None:
            return []

        siblings = await self.catalog.find_by_name_token(token, product.upc, _SIBLING_FETCH)
        own_tokens = set(canonical_name_tokens(product.name))
        # Most specific name match first
        siblings = sorted(
            siblings,
            key=lambda s: (-len(own_tokens & set(canonical_name_tokens(s.name))), len(s.name)),
        )[:_MAX_SIBLINGS]

        for sibling in siblings:
            entry = await self.cache.get(sibling.upc)
            if entry is None:
                continue
            found = finalize(await self.catalog.get_many(entry.upcs), product.upc, limit)
            if found:
                logger.info(f"Using swaps of sibling {sibling.upc} ({sibling.name!r}) for {product.upc}")
                return found
        return []

    async def type_classified(self, product: CatalogProduct, limit: int) -> list[CatalogProduct]:
        product_type = classify(product.type_text)
        if product_type is None:
            return []

        threshold = max(product.score or 0, self.min_score)
        fetch = limit * _TYPE_FETCH_FACTOR

        if product.subcategory:
            rows = await self.catalog.list_by_subcategory(product.subcategory, threshold, product.upc, fetch)
            found = self._same_type(rows, product_type, limit)
            if found:
                return found

        rows = await self.catalog.search_text(product_type.fallback_search_phrase, threshold, product.upc, fetch)
        found = self._same_type(rows, product_type, limit)
        if found:
            return found

        if product.category:
            rows = await self.catalog.list_by_category(product.category, threshold, product.upc, fetch)
            return self._same_type(rows, product_type, limit)
        return []

    async def discover(self, product: CatalogProduct, limit: int) -> list[CatalogProduct]:
        assert self.discovery is not None
        return await self.discovery.discover(product, product.upc, limit)

    @staticmethod
    def _same_type(
        rows: Sequence[CatalogProduct], product_type: ProductType, limit: int
    ) -> list[CatalogProduct]:
        return [r for r in rows if matches_type(r.match_text, product_type, category_text=r.category)][:limit]
