"""Catalog store: product lookups and the swap-list columns.

The resolver depends on the CatalogStore protocol only. SqlCatalogStore is the
PostgreSQL implementation; every backing-call failure surfaces as
SourceUnavailableError so callers can treat it as an empty contribution.

Score filters are strict: `min_score=40` means "total_score > 40".
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from swapfinder.models import Product, SwapOrigin
from swapfinder.services.dedup import category_like_pattern
from swapfinder.services.errors import SourceUnavailableError
from swapfinder.services.product_types import product_text
from swapfinder.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class CatalogProduct:
    """Read-only snapshot of a catalog row."""

    upc: str
    name: str
    brand: str | None = None
    category: str | None = None
    subcategory: str | None = None
    score: int | None = None
    typical_price: float | None = None
    image_url: str | None = None
    company_name: str | None = None
    nutriscore_grade: str | None = None
    nova_group: int | None = None
    is_organic: bool = False
    swaps_to: tuple[str, ...] = ()
    swap_origin: SwapOrigin = SwapOrigin.NONE
    swap_discovered_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.score is not None and not 0 <= self.score <= 100:
            raise ValueError(f"Score out of range for {self.upc}: {self.score}")

    @property
    def type_text(self) -> str:
        """Text used for product type classification."""
        return product_text(self.name, self.subcategory, self.category)

    @property
    def match_text(self) -> str:
        """Text a candidate must satisfy type keywords against."""
        return product_text(self.name, self.subcategory)


@dataclass(frozen=True)
class CuratedSwaps:
    """A product's stored swap list."""

    upcs: tuple[str, ...]
    origin: SwapOrigin
    discovered_at: datetime | None = None


@dataclass
class DiscoveredProduct:
    """Externally discovered product to insert/refresh in the catalog."""

    upc: str
    name: str
    brand: str | None
    category: str | None
    score: int
    discovery_type: str
    image_url: str | None = None
    nutriscore_grade: str | None = None
    nova_group: int | None = None
    is_organic: bool = False
    reasons: list[str] = field(default_factory=list)


class CatalogStore(Protocol):
    async def get_by_id(self, upc: str) -> CatalogProduct | None: ...

    async def get_many(self, upcs: Sequence[str]) -> list[CatalogProduct]: ...

    async def list_by_subcategory(
        self, subcategory: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]: ...

    async def list_by_category(
        self, category: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]: ...

    async def search_text(
        self, query: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]: ...

    async def find_by_name_token(
        self, token: str, exclude_id: str, limit: int
    ) -> list[CatalogProduct]: ...

    async def get_curated_swaps(self, upc: str) -> CuratedSwaps | None: ...

    async def write_curated_swaps(
        self,
        upc: str,
        upcs: Sequence[str],
        origin: SwapOrigin,
        timestamp: datetime | None,
        discovery_type: str | None = None,
    ) -> bool: ...

    async def clear_dynamic_swaps(self, upc: str) -> bool: ...

    async def upsert_discovered(self, products: Sequence[DiscoveredProduct]) -> list[CatalogProduct]: ...


def parse_swaps_json(raw: str | None) -> tuple[str, ...]:
    """Decode a stored swap list; malformed values decode to ()."""
    if not raw:
        return ()
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return ()
    if not isinstance(data, list):
        return ()
    return tuple(str(x) for x in data if x)


def _origin(value: str | None) -> SwapOrigin:
    try:
        return SwapOrigin(value or SwapOrigin.NONE.value)
    except ValueError:
        return SwapOrigin.NONE


def to_catalog_product(row: Product) -> CatalogProduct:
    return CatalogProduct(
        upc=row.upc,
        name=row.name,
        brand=row.brand,
        category=row.category,
        subcategory=row.subcategory,
        score=row.total_score,
        typical_price=row.typical_price,
        image_url=row.image_url,
        company_name=row.company_name,
        nutriscore_grade=row.nutriscore_grade,
        nova_group=row.nova_group,
        is_organic=bool(row.is_organic),
        swaps_to=parse_swaps_json(row.swaps_to_json),
        swap_origin=_origin(row.swap_origin),
        swap_discovered_at=row.swap_discovered_at,
    )


def _tsquery_terms(query: str) -> str | None:
    """OR-joined lexemes for to_tsquery ("organic chips" -> "organic | chips")."""
    terms = re.findall(r"[a-z0-9]+", query.lower())
    if not terms:
        return None
    return " | ".join(dict.fromkeys(terms))


class SqlCatalogStore:
    """CatalogStore backed by the products table."""

    source_name = "catalog"

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with get_session() as session:
                yield session
        except SourceUnavailableError:
            raise
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise SourceUnavailableError(self.source_name, str(e)) from e

    def _scored_above(self, min_score: int, exclude_id: str):
        return (
            select(Product)
            .where(Product.total_score.is_not(None))
            .where(Product.total_score > min_score)
            .where(Product.upc != exclude_id)
        )

    async def get_by_id(self, upc: str) -> CatalogProduct | None:
        async with self._session() as session:
            result = await session.execute(select(Product).where(Product.upc == upc))
            row = result.scalar_one_or_none()
            return to_catalog_product(row) if row else None

    async def get_many(self, upcs: Sequence[str]) -> list[CatalogProduct]:
        if not upcs:
            return []
        async with self._session() as session:
            result = await session.execute(select(Product).where(Product.upc.in_(list(upcs))))
            by_upc = {row.upc: to_catalog_product(row) for row in result.scalars().all()}
        # Preserve the requested (editorial) order
        return [by_upc[u] for u in dict.fromkeys(upcs) if u in by_upc]

    async def list_by_subcategory(
        self, subcategory: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]:
        query = (
            self._scored_above(min_score, exclude_id)
            .where(Product.subcategory.ilike(f"%{subcategory}%"))
            .order_by(Product.total_score.desc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [to_catalog_product(r) for r in result.scalars().all()]

    async def list_by_category(
        self, category: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]:
        pattern = category_like_pattern(category)
        condition = Product.category == category
        if pattern:
            condition = or_(condition, Product.category.ilike(pattern))
        query = (
            self._scored_above(min_score, exclude_id)
            .where(condition)
            .order_by(Product.total_score.desc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [to_catalog_product(r) for r in result.scalars().all()]

    async def search_text(
        self, query: str, min_score: int, exclude_id: str, limit: int
    ) -> list[CatalogProduct]:
        """Full-text search over name + subcategory, ranked by relevance then score."""
        terms = _tsquery_terms(query)
        if not terms:
            return []
        document = func.to_tsvector(
            "english",
            func.concat_ws(" ", Product.name, func.coalesce(Product.subcategory, "")),
        )
        tsquery = func.to_tsquery("english", terms)
        stmt = (
            self._scored_above(min_score, exclude_id)
            .where(document.op("@@")(tsquery))
            .order_by(func.ts_rank(document, tsquery).desc(), Product.total_score.desc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [to_catalog_product(r) for r in result.scalars().all()]

    async def find_by_name_token(self, token: str, exclude_id: str, limit: int) -> list[CatalogProduct]:
        """Products whose (punctuation-stripped) name contains `token` and that have a swap list."""
        normalized_name = func.regexp_replace(func.lower(Product.name), r"[^a-z0-9\s]", "", "g")
        stmt = (
            select(Product)
            .where(normalized_name.like(f"%{token}%"))
            .where(Product.upc != exclude_id)
            .where(Product.swaps_to_json.is_not(None))
            .where(Product.swaps_to_json.not_in(["", "[]"]))
            .order_by(func.length(Product.name).asc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [to_catalog_product(r) for r in result.scalars().all()]

    async def get_curated_swaps(self, upc: str) -> CuratedSwaps | None:
        stmt = select(Product.swaps_to_json, Product.swap_origin, Product.swap_discovered_at).where(
            Product.upc == upc
        )
        async with self._session() as session:
            row = (await session.execute(stmt)).one_or_none()
        if row is None:
            return None
        upcs = parse_swaps_json(row.swaps_to_json)
        if not upcs:
            return None
        origin = _origin(row.swap_origin)
        if origin == SwapOrigin.NONE:
            # Rows imported before swap_origin existed are editorial
            origin = SwapOrigin.EDITORIAL
        return CuratedSwaps(upcs=upcs, origin=origin, discovered_at=row.swap_discovered_at)

    async def write_curated_swaps(
        self,
        upc: str,
        upcs: Sequence[str],
        origin: SwapOrigin,
        timestamp: datetime | None,
        discovery_type: str | None = None,
    ) -> bool:
        """Store a swap list. A dynamic list never replaces an editorial one."""
        values: dict[str, object] = {
            "swaps_to_json": json.dumps(list(upcs)),
            "swap_origin": origin.value,
            "swap_discovered_at": timestamp,
        }
        if discovery_type is not None:
            values["swap_discovery_type"] = discovery_type
        stmt = update(Product).where(Product.upc == upc)
        if origin == SwapOrigin.DYNAMIC:
            # Rows with a list and no origin predate swap_origin and count as editorial
            stmt = stmt.where(
                or_(
                    Product.swap_origin == SwapOrigin.DYNAMIC.value,
                    Product.swaps_to_json.is_(None),
                    Product.swaps_to_json.in_(["", "[]"]),
                )
            )
        async with self._session() as session:
            result = await session.execute(stmt.values(**values))
            return bool(result.rowcount)

    async def clear_dynamic_swaps(self, upc: str) -> bool:
        """Reset a dynamic swap list. Editorial lists are left untouched."""
        stmt = (
            update(Product)
            .where(Product.upc == upc)
            .where(Product.swap_origin == SwapOrigin.DYNAMIC.value)
            .values(swaps_to_json="[]", swap_origin=SwapOrigin.NONE.value, swap_discovered_at=None)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return bool(result.rowcount)

    async def upsert_discovered(self, products: Sequence[DiscoveredProduct]) -> list[CatalogProduct]:
        """Insert discovered products; existing rows keep their name and never lose score."""
        if not products:
            return []
        rows = [
            {
                "upc": p.upc,
                "name": p.name,
                "brand": p.brand,
                "category": p.category,
                "image_url": p.image_url,
                "nutriscore_grade": p.nutriscore_grade,
                "nova_group": p.nova_group,
                "is_organic": p.is_organic,
                "total_score": p.score,
                "swap_discovery_type": p.discovery_type,
            }
            for p in products
        ]
        stmt = pg_insert(Product).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.upc],
            set_={
                "image_url": func.coalesce(stmt.excluded.image_url, Product.image_url),
                "nutriscore_grade": func.coalesce(stmt.excluded.nutriscore_grade, Product.nutriscore_grade),
                "nova_group": func.coalesce(stmt.excluded.nova_group, Product.nova_group),
                "is_organic": or_(stmt.excluded.is_organic, Product.is_organic),
                "swap_discovery_type": stmt.excluded.swap_discovery_type,
                "total_score": func.greatest(stmt.excluded.total_score, Product.total_score),
            },
        ).returning(Product)
        async with self._session() as session:
            result = await session.scalars(stmt, execution_options={"populate_existing": True})
            saved = [to_catalog_product(r) for r in result.all()]
        logger.info(f"Upserted {len(saved)} discovered products")
        return sorted(saved, key=lambda p: p.score or 0, reverse=True)
