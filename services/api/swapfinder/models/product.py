"""Product model.

A catalog product identified by its barcode (UPC/EAN).

The score and the editorial swap list are maintained out-of-band; the only
columns this service writes during resolution are the discovery-cache columns
(swaps_to_json with swap_origin="dynamic", swap_discovered_at, swap_discovery_type)
and rows inserted for newly discovered products.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from swapfinder.stores.postgres import Base


class SwapOrigin(str, Enum):
    """Where a product's swap list came from."""

    NONE = "none"
    EDITORIAL = "editorial"
    DYNAMIC = "dynamic"


class Product(Base):
    """Catalog product."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "total_score IS NULL OR (total_score >= 0 AND total_score <= 100)",
            name="ck_products_total_score_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # External identifier (barcode)
    upc: Mapped[str] = mapped_column(String(20), unique=True, index=True)

    # Display info
    name: Mapped[str] = mapped_column(String(500))
    brand: Mapped[str | None] = mapped_column(String(200))
    company_name: Mapped[str | None] = mapped_column(String(200))
    image_url: Mapped[str | None] = mapped_column(Text)

    # Classification
    category: Mapped[str | None] = mapped_column(String(200), index=True)  # e.g. "en:breakfast-cereals"
    subcategory: Mapped[str | None] = mapped_column(String(200), index=True)  # e.g. "chips"

    # Scoring inputs/outputs (score is computed elsewhere)
    total_score: Mapped[int | None] = mapped_column(Integer, index=True)
    nutriscore_grade: Mapped[str | None] = mapped_column(String(1))
    nova_group: Mapped[int | None] = mapped_column(Integer)
    is_organic: Mapped[bool] = mapped_column(Boolean, default=False)
    typical_price: Mapped[float | None] = mapped_column()

    # Swap list (JSON array of UPCs, ordered)
    swaps_to_json: Mapped[str] = mapped_column(Text, default="[]", server_default="[]")
    swap_origin: Mapped[str] = mapped_column(
        String(20),
        default=SwapOrigin.NONE.value,
        server_default=SwapOrigin.NONE.value,
    )
    swap_discovered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    swap_discovery_type: Mapped[str | None] = mapped_column(String(50), index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.upc} {self.name!r}>"
