"""Dynamic swap discovery (last resolver tier).

Pipeline:
1. Pick the product type (detection pattern, then catalog category inference)
2. Search the external service under one overall timeout
3. Drop candidates that fail the type keywords or have no Nutri-Score grade
4. Rank (grade desc, organic first, NOVA asc), dedup by brand+name, cap
5. Score, upsert into the catalog, keep the ones above the threshold
6. Write the result back through the swap cache (origin=dynamic)
"""

import asyncio
import logging
from typing import Protocol

from swapfinder.services.catalog import CatalogProduct, CatalogStore, DiscoveredProduct
from swapfinder.services.dedup import compute_product_dedup_key
from swapfinder.services.off_client import OffProduct, SearchConstraints
from swapfinder.services.product_types import (
    ProductType,
    classify,
    infer_type_from_category,
    matches_type,
)
from swapfinder.services.scoring import NUTRISCORE_RANK, ScoreFactors, Scorer, estimate_score_with_reasons
from swapfinder.services.swap_cache import SwapCache

logger = logging.getLogger("uvicorn.error")

MAX_DISCOVERED_CANDIDATES = 15
UPC_LENGTH = 13


class SearchClient(Protocol):
    async def search(self, query_text: str, constraints: SearchConstraints) -> list[OffProduct]: ...


class Discovery(Protocol):
    """What the resolver needs from tier 4."""

    async def discover(self, product: CatalogProduct, exclude_id: str, limit: int) -> list[CatalogProduct]: ...


def pad_upc(code: str) -> str:
    """Left-pad numeric barcodes to EAN-13."""
    code = code.strip()
    if code.isdigit() and len(code) < UPC_LENGTH:
        return code.zfill(UPC_LENGTH)
    return code


def resolve_discovery_type(product: CatalogProduct) -> ProductType | None:
    return classify(product.type_text) or infer_type_from_category(product.category)


def _rank_key(candidate: OffProduct) -> tuple[int, int, int]:
    grade_rank = NUTRISCORE_RANK.get(candidate.nutriscore_grade or "", 0)
    return (-grade_rank, 0 if candidate.is_organic else 1, candidate.nova_group or 4)


def filter_candidates(
    candidates: list[OffProduct],
    product_type: ProductType,
    exclude_id: str,
) -> list[OffProduct]:
    """Apply type keywords, grade requirement, ranking, dedup and the cap."""
    excluded = {exclude_id, pad_upc(exclude_id)}
    kept = [
        c
        for c in candidates
        if c.code
        and c.product_name
        and c.code not in excluded
        and pad_upc(c.code) not in excluded
        and c.nutriscore_grade
        and matches_type(c.product_name, product_type, category_text=c.categories_text)
    ]
    kept.sort(key=_rank_key)

    seen: set[str] = set()
    unique: list[OffProduct] = []
    for candidate in kept:
        key = compute_product_dedup_key(candidate.brands, candidate.product_name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
        if len(unique) >= MAX_DISCOVERED_CANDIDATES:
            break
    return unique


class DynamicDiscovery:
    """Discovery backed by an external search client and the catalog."""

    def __init__(
        self,
        catalog: CatalogStore,
        client: SearchClient,
        scorer: Scorer,
        cache: SwapCache,
        *,
        timeout_seconds: float = 4.0,
        min_score: int = 30,
    ):
        self.catalog = catalog
        self.client = client
        self.scorer = scorer
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self.min_score = min_score

    async def discover(self, product: CatalogProduct, exclude_id: str, limit: int) -> list[CatalogProduct]:
        """Find, score, persist and return better external alternatives.

        Raises DiscoveryError (external failure) or SourceUnavailableError
        (catalog upsert failure). A timeout returns [].
        """
        product_type = resolve_discovery_type(product)
        if product_type is None:
            logger.info(f"Discovery skipped for {product.upc}: no product type")
            return []

        constraints = SearchConstraints(
            category_tags=product_type.external_categories[:2],
            exclude_code=exclude_id,
        )
        try:
            raw = await asyncio.wait_for(
                self.client.search(product_type.fallback_search_phrase, constraints),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Discovery timed out after {self.timeout_seconds}s for {product.upc} ({product_type.id})"
            )
            return []

        candidates = filter_candidates(raw, product_type, exclude_id)
        logger.info(
            f"Discovery for {product.upc} ({product_type.id}): {len(raw)} raw, {len(candidates)} kept"
        )
        if not candidates:
            return []

        discovered = self._score(candidates, product_type)
        if not discovered:
            return []

        saved = await self.catalog.upsert_discovered(discovered)

        threshold = max(product.score or 0, self.min_score)
        better = sorted(
            (p for p in saved if p.score is not None and p.score > threshold and p.upc != exclude_id),
            key=lambda p: p.score or 0,
            reverse=True,
        )[:limit]

        if better:
            await self.cache.populate(
                product.upc,
                [p.upc for p in better],
                discovery_type=product_type.id,
            )
        return better

    def _score(self, candidates: list[OffProduct], product_type: ProductType) -> list[DiscoveredProduct]:
        discovered: list[DiscoveredProduct] = []
        for c in candidates:
            factors = ScoreFactors(
                nutriscore_grade=c.nutriscore_grade,
                nova_group=c.nova_group,
                is_organic=c.is_organic,
            )
            score = self.scorer.score(factors)
            if score is None:
                continue
            _, reasons = estimate_score_with_reasons(factors)
            discovered.append(
                DiscoveredProduct(
                    upc=pad_upc(c.code),
                    name=c.product_name,
                    brand=c.brands,
                    category=c.categories_tags[0] if c.categories_tags else None,
                    score=max(0, min(100, score)),
                    discovery_type=product_type.id,
                    image_url=c.image_url,
                    nutriscore_grade=c.nutriscore_grade,
                    nova_group=c.nova_group,
                    is_organic=c.is_organic,
                    reasons=reasons,
                )
            )
        return discovered
