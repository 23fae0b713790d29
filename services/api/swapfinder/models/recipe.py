"""Recipe model.

Homemade alternatives shown next to product swaps.
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapfinder.stores.postgres import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)

    # Recipe category this replaces, e.g. "Chips", "Kids Cereal"
    replaces_category: Mapped[str | None] = mapped_column(String(100), index=True)
    # JSON array of UPCs this recipe replaces directly
    replaces_products_json: Mapped[str] = mapped_column(Text, default="[]", server_default="[]")

    prep_minutes: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<Recipe {self.name!r}>"
