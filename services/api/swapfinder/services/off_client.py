"""Open Food Facts client for dynamic swap discovery.

This is the last-resort source: it is only called when the catalog has no
curated, sibling or type-matched swaps for a product.

Search strategy (per discovery call):
1. Category search for up to two external category tags of the product type
2. Keyword search with the type's fallback phrase, only if fewer than 10
   candidates were collected

Caching:
- Raw search responses are cached in Redis by request hash
  (TTL = discovery_cache_hours). Redis being down is a cache miss, not an error.

Timeouts:
- Every HTTP request carries the discovery timeout; the caller additionally
  bounds the whole call.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from swapfinder.services.errors import DiscoveryError
from swapfinder.settings import get_settings
from swapfinder.stores.redis import get_off_search_cache, set_off_search_cache

logger = logging.getLogger("uvicorn.error")

_MIN_CANDIDATES_BEFORE_KEYWORD_SEARCH = 10


@dataclass
class OffProduct:
    """Parsed product from the Open Food Facts search API."""

    code: str
    product_name: str
    brands: str | None = None
    image_url: str | None = None
    nutriscore_grade: str | None = None
    nova_group: int | None = None
    categories_tags: list[str] = field(default_factory=list)
    labels_tags: list[str] = field(default_factory=list)

    @property
    def is_organic(self) -> bool:
        return any("organic" in label for label in self.labels_tags)

    @property
    def categories_text(self) -> str:
        return " ".join(self.categories_tags).lower()


@dataclass(frozen=True)
class SearchConstraints:
    """Constraints for one discovery search."""

    category_tags: tuple[str, ...] = ()
    exclude_code: str | None = None
    category_page_size: int = 30
    keyword_page_size: int = 20


class OpenFoodFactsClient:
    """Client for the Open Food Facts v1 search endpoint."""

    SEARCH_PATH = "/cgi/search.pl"
    FIELDS = (
        "code,product_name,brands,image_url,nutriscore_grade,nova_group,"
        "categories_tags,labels_tags"
    )

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        country: str | None = None,
        cache_ttl_seconds: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.off_base_url).rstrip("/")
        self.user_agent = user_agent or settings.off_user_agent
        self.timeout = timeout or settings.discovery_timeout_seconds
        self.country = country or settings.off_country
        self.cache_ttl_seconds = cache_ttl_seconds or settings.discovery_cache_hours * 3600
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def search(self, query_text: str, constraints: SearchConstraints) -> list[OffProduct]:
        """Search for candidate products.

        Individual request failures are skipped; DiscoveryError is raised only
        when every request failed.

        Returns:
            Parsed products with code and name, deduplicated by code, in API order.
        """
        collected: dict[str, OffProduct] = {}
        attempts = 0
        failures = 0

        for tag in constraints.category_tags[:2]:
            attempts += 1
            params = {
                **self._base_params(constraints.category_page_size),
                "tagtype_0": "categories",
                "tag_contains_0": "contains",
                "tag_0": tag,
                "tagtype_1": "countries",
                "tag_contains_1": "contains",
                "tag_1": self.country,
            }
            try:
                self._collect(await self._search_request(params), constraints, collected)
            except DiscoveryError as e:
                failures += 1
                logger.warning(f"Open Food Facts category search failed for {tag}: {e}")

        if len(collected) < _MIN_CANDIDATES_BEFORE_KEYWORD_SEARCH and query_text.strip():
            attempts += 1
            params = {
                **self._base_params(constraints.keyword_page_size),
                "search_terms": query_text,
                "search_simple": "1",
                "tagtype_0": "countries",
                "tag_contains_0": "contains",
                "tag_0": self.country,
            }
            try:
                self._collect(await self._search_request(params), constraints, collected)
            except DiscoveryError as e:
                failures += 1
                logger.warning(f"Open Food Facts keyword search failed for {query_text!r}: {e}")

        if attempts and failures == attempts:
            raise DiscoveryError(f"All {attempts} Open Food Facts searches failed")

        logger.info(f"Open Food Facts returned {len(collected)} candidates for {query_text!r}")
        return list(collected.values())

    def _base_params(self, page_size: int) -> dict[str, str]:
        return {
            "action": "process",
            "json": "true",
            "page_size": str(page_size),
            "sort_by": "nutriscore_score",
            "fields": self.FIELDS,
        }

    def _collect(
        self,
        items: list[dict[str, Any]],
        constraints: SearchConstraints,
        collected: dict[str, OffProduct],
    ) -> None:
        for item in items:
            product = self._parse_product(item)
            if product is None:
                continue
            if constraints.exclude_code and product.code == constraints.exclude_code:
                continue
            collected.setdefault(product.code, product)

    async def _search_request(self, params: dict[str, str]) -> list[dict[str, Any]]:
        """Run one search request (Redis-cached)."""
        cache_key = self._build_cache_key(params)

        try:
            cached = await get_off_search_cache(cache_key)
            if cached is not None:
                logger.info(f"Open Food Facts cache HIT for {cache_key}")
                return cached
        except Exception as e:
            logger.warning(f"Redis cache read failed: {e}")

        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}{self.SEARCH_PATH}", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise DiscoveryError(f"Open Food Facts request failed: {e}") from e
        except ValueError as e:
            raise DiscoveryError("Open Food Facts returned invalid JSON") from e

        products = self._extract_products(data)

        if products:
            try:
                await set_off_search_cache(cache_key, products, self.cache_ttl_seconds)
            except Exception as e:
                logger.warning(f"Redis cache write failed: {e}")

        return products

    def _build_cache_key(self, params: dict[str, str]) -> str:
        key_parts = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha256(key_parts.encode()).hexdigest()[:16]

    def _extract_products(self, data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, dict):
            raise DiscoveryError("Unexpected response from Open Food Facts")
        products = data.get("products") or []
        if not isinstance(products, list):
            return []
        return [p for p in products if isinstance(p, dict)]

    def _parse_product(self, item: dict[str, Any]) -> OffProduct | None:
        code = str(item.get("code") or "").strip()
        name = str(item.get("product_name") or "").strip()
        if not code or not name:
            return None

        nova_group: int | None
        try:
            nova_group = int(item["nova_group"]) if item.get("nova_group") not in (None, "") else None
        except (TypeError, ValueError):
            nova_group = None

        grade = item.get("nutriscore_grade")
        grade = str(grade).lower().strip() if grade else None
        if grade not in ("a", "b", "c", "d", "e"):
            grade = None

        return OffProduct(
            code=code,
            product_name=name,
            brands=(item.get("brands") or None),
            image_url=(item.get("image_url") or None),
            nutriscore_grade=grade,
            nova_group=nova_group,
            categories_tags=[str(t) for t in item.get("categories_tags") or []],
            labels_tags=[str(t).lower() for t in item.get("labels_tags") or []],
        )


# Singleton client instance
_client: OpenFoodFactsClient | None = None


def get_off_client() -> OpenFoodFactsClient:
    """Get Open Food Facts client singleton."""
    global _client
    if _client is None:
        _client = OpenFoodFactsClient()
    return _client


async def close_off_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
