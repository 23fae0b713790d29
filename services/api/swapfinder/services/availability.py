"""Availability aggregation across three independent sources.

Priority (each source queried only while fewer than `cap` stores collected):
1. community  - recent community sightings, most corroborated first
2. crawl      - latest unexpired flyer listing per merchant (price disclaimer)
3. curated    - manually verified chains, alphabetical

Dedup key is canonical_store_name(); an earlier source always keeps its
record for a store. A failing source contributes nothing.
"""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Protocol

from sqlalchemy import Select, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from swapfinder.models import CuratedAvailability, FlyerListing, LocalSighting
from swapfinder.services.dedup import canonical_store_name
from swapfinder.services.errors import SourceUnavailableError
from swapfinder.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")

DEFAULT_CAP = 5
CURATED_DISCLAIMER = "Generally carried at this retailer"


class AvailabilityTier(str, Enum):
    COMMUNITY = "community"
    CRAWL = "crawl"
    CURATED = "curated"


@dataclass
class AvailabilityRecord:
    store_name: str
    source_tier: AvailabilityTier
    price: float | None = None
    corroboration_count: int | None = None
    as_of: datetime | None = None
    disclaimer: str | None = None
    address: str | None = None
    aisle: str | None = None
    price_text: str | None = None

    @property
    def key(self) -> str:
        return canonical_store_name(self.store_name)


def price_as_of(when: datetime) -> str:
    """Crawl disclaimer, e.g. "Price as of Oct 19"."""
    return f"Price as of {when:%b} {when.day}"


class AvailabilitySources(Protocol):
    async def community_by_product(
        self, upc: str, freshness_days: int, limit: int
    ) -> list[AvailabilityRecord]: ...

    async def crawl_by_product_or_name(
        self, upc: str, name_pattern: str | None, limit: int
    ) -> list[AvailabilityRecord]: ...

    async def curated_by_product(self, upc: str, limit: int) -> list[AvailabilityRecord]: ...


class SqlAvailabilitySources:
    """AvailabilitySources backed by the three availability tables."""

    @asynccontextmanager
    async def _session(self, source: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with get_session() as session:
                yield session
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            raise SourceUnavailableError(source, str(e)) from e

    async def community_by_product(
        self, upc: str, freshness_days: int, limit: int
    ) -> list[AvailabilityRecord]:
        cutoff = datetime.now(timezone.utc) - timedelta(days=freshness_days)
        stmt = (
            select(LocalSighting)
            .where(LocalSighting.upc == upc)
            .where(LocalSighting.in_stock.is_(True))
            .where(LocalSighting.last_verified_at > cutoff)
            .order_by(LocalSighting.verified_count.desc(), LocalSighting.last_verified_at.desc())
            .limit(limit)
        )
        async with self._session(AvailabilityTier.COMMUNITY.value) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            AvailabilityRecord(
                store_name=r.store_name,
                source_tier=AvailabilityTier.COMMUNITY,
                price=r.price,
                corroboration_count=r.verified_count,
                as_of=r.last_verified_at,
                address=r.store_address,
                aisle=r.aisle,
            )
            for r in rows
        ]

    def crawl_query(self, upc: str, name_pattern: str | None, limit: int) -> Select:
        """Latest unexpired listing per merchant, by identifier or name containment."""
        match = FlyerListing.upc == upc
        if name_pattern:
            match = or_(match, FlyerListing.flyer_product_name.icontains(name_pattern, autoescape=True))
        return (
            select(FlyerListing)
            .where(match)
            .where(FlyerListing.expires_at > datetime.now(timezone.utc))
            .distinct(FlyerListing.merchant)
            .order_by(FlyerListing.merchant, FlyerListing.crawled_at.desc())
            .limit(limit)
        )

    async def crawl_by_product_or_name(
        self, upc: str, name_pattern: str | None, limit: int
    ) -> list[AvailabilityRecord]:
        stmt = self.crawl_query(upc, name_pattern, limit)
        async with self._session(AvailabilityTier.CRAWL.value) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            AvailabilityRecord(
                store_name=r.merchant,
                source_tier=AvailabilityTier.CRAWL,
                price=r.price,
                price_text=r.price_text,
                as_of=r.crawled_at,
                disclaimer=price_as_of(r.crawled_at),
            )
            for r in rows
        ]

    async def curated_by_product(self, upc: str, limit: int) -> list[AvailabilityRecord]:
        stmt = (
            select(CuratedAvailability.store_name)
            .where(CuratedAvailability.upc == upc)
            .order_by(CuratedAvailability.store_name)
            .limit(limit)
        )
        async with self._session(AvailabilityTier.CURATED.value) as session:
            names = (await session.execute(stmt)).scalars().all()
        return [
            AvailabilityRecord(
                store_name=name,
                source_tier=AvailabilityTier.CURATED,
                disclaimer=CURATED_DISCLAIMER,
            )
            for name in names
        ]


class AvailabilityAggregator:
    # Curated lists can be longer than the cap; fetch extra so dedup still fills it
    _CURATED_FETCH = 8

    def __init__(
        self,
        sources: AvailabilitySources,
        *,
        cap: int = DEFAULT_CAP,
        freshness_days: int = 90,
    ):
        self.sources = sources
        self.cap = cap
        self.freshness_days = freshness_days

    async def aggregate(
        self,
        upc: str,
        cap: int | None = None,
        name: str | None = None,
    ) -> list[AvailabilityRecord]:
        """Deduplicated, capped store list for one product."""
        cap = self.cap if cap is None else cap
        records: list[AvailabilityRecord] = []
        seen: set[str] = set()

        fetchers = (
            (AvailabilityTier.COMMUNITY, lambda: self.sources.community_by_product(upc, self.freshness_days, cap)),
            (AvailabilityTier.CRAWL, lambda: self.sources.crawl_by_product_or_name(upc, name, cap)),
            (AvailabilityTier.CURATED, lambda: self.sources.curated_by_product(upc, max(cap, self._CURATED_FETCH))),
        )
        for tier, fetch in fetchers:
            if len(records) >= cap:
                break
            try:
                found = await fetch()
            except SourceUnavailableError as e:
                logger.warning(f"Availability source '{tier.value}' failed for {upc}: {e}")
                continue
            self._merge(records, seen, found, cap)

        return records

    @staticmethod
    def _merge(
        records: list[AvailabilityRecord],
        seen: set[str],
        found: Sequence[AvailabilityRecord],
        cap: int,
    ) -> None:
        for record in found:
            if len(records) >= cap:
                return
            key = record.key
            if not key or key in seen:
                continue
            seen.add(key)
            records.append(record)
