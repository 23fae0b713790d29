"""Write-behind cache of swap lists, stored on the product row.

get():
- editorial lists are always returned
- dynamic (discovered) lists are returned only while fresh (discovery_cache_hours)

populate():
- writes a dynamic list back onto the product (never over an editorial list),
  either synchronously or as a background task. Concurrent populates for
  the same product are last-writer-wins; readers re-validate every entry
  against the catalog.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Literal

from swapfinder.models import SwapOrigin
from swapfinder.services.catalog import CatalogStore, CuratedSwaps
from swapfinder.services.errors import SourceUnavailableError

logger = logging.getLogger("uvicorn.error")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SwapCache:
    def __init__(
        self,
        catalog: CatalogStore,
        *,
        ttl: timedelta = timedelta(hours=72),
        write_mode: Literal["sync", "background"] = "sync",
        clock=_utcnow,
    ):
        self.catalog = catalog
        self.ttl = ttl
        self.write_mode = write_mode
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    def is_fresh(self, entry: CuratedSwaps) -> bool:
        if entry.origin != SwapOrigin.DYNAMIC:
            return True
        if entry.discovered_at is None:
            return False
        discovered_at = entry.discovered_at
        if discovered_at.tzinfo is None:
            discovered_at = discovered_at.replace(tzinfo=timezone.utc)
        return self._clock() - discovered_at < self.ttl

    async def get(self, upc: str) -> CuratedSwaps | None:
        """Usable swap list for `upc`, or None. Raises SourceUnavailableError."""
        entry = await self.catalog.get_curated_swaps(upc)
        if entry is None or not entry.upcs:
            return None
        if not self.is_fresh(entry):
            logger.info(f"Dynamic swap cache for {upc} is stale, ignoring")
            return None
        return entry

    async def populate(
        self,
        upc: str,
        upcs: Sequence[str],
        *,
        discovery_type: str | None = None,
    ) -> None:
        """Persist discovered swaps for `upc` (origin=dynamic)."""
        if not upcs:
            return
        if self.write_mode == "background":
            task = asyncio.create_task(self._write(upc, list(upcs), discovery_type))
            self._pending.add(task)
            task.add_done_callback(self._write_done)
            return
        await self._write(upc, list(upcs), discovery_type)

    async def drain(self) -> None:
        """Wait for background writes (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _write(self, upc: str, upcs: list[str], discovery_type: str | None) -> None:
        try:
            written = await self.catalog.write_curated_swaps(
                upc,
                upcs,
                SwapOrigin.DYNAMIC,
                self._clock(),
                discovery_type=discovery_type,
            )
            if written:
                logger.info(f"Cached {len(upcs)} dynamic swaps for {upc}")
            else:
                logger.info(f"Dynamic swaps for {upc} not cached: editorial list present or product missing")
        except SourceUnavailableError as e:
            # The cache is an optimization only; the next request rediscovers.
            logger.warning(f"Swap cache write failed for {upc}: {e}")

    def _write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background swap cache write failed: {exc!r}")
