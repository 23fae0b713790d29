"""Availability source tables.

Three independent sources describe where a product can be bought:
- local_sightings: community reports ("I saw it at ...")
- flyer_availability: weekly ad/flyer crawl results (with prices, expiring)
- curated_availability: manually verified chain-level ground truth
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from swapfinder.stores.postgres import Base


class LocalSighting(Base):
    """Community-reported sighting of a product at a store."""

    __tablename__ = "local_sightings"

    id: Mapped[int] = mapped_column(primary_key=True)
    upc: Mapped[str] = mapped_column(String(20), index=True)

    store_name: Mapped[str] = mapped_column(String(255))
    store_address: Mapped[str | None] = mapped_column(Text)
    store_zip: Mapped[str | None] = mapped_column(String(10), index=True)

    aisle: Mapped[str | None] = mapped_column(String(50))
    price: Mapped[float | None] = mapped_column()
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True)

    # Corroboration: bumped every time another user confirms the sighting
    verified_count: Mapped[int] = mapped_column(Integer, default=1)
    reported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    last_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<LocalSighting {self.upc} @ {self.store_name}>"


class FlyerListing(Base):
    """Weekly ad/flyer listing from the crawler."""

    __tablename__ = "flyer_availability"
    __table_args__ = (
        UniqueConstraint("upc", "merchant", "flyer_item_id", name="uq_flyer_upc_merchant_item"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    upc: Mapped[str | None] = mapped_column(String(20), index=True)

    merchant: Mapped[str] = mapped_column(String(100), index=True)
    flyer_product_name: Mapped[str | None] = mapped_column(String(500))
    flyer_item_id: Mapped[str] = mapped_column(String(50), default="unknown")

    price: Mapped[float | None] = mapped_column()
    price_text: Mapped[str | None] = mapped_column(String(100))
    valid_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    crawled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<FlyerListing {self.upc} @ {self.merchant}>"


class CuratedAvailability(Base):
    """Manually verified: this chain generally carries the product."""

    __tablename__ = "curated_availability"
    __table_args__ = (UniqueConstraint("upc", "store_name", name="uq_curated_upc_store"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    upc: Mapped[str] = mapped_column(String(20), index=True)
    store_name: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<CuratedAvailability {self.upc} @ {self.store_name}>"
