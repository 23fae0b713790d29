"""Homemade alternatives (recipes) for a product."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError

from swapfinder.models import Recipe
from swapfinder.services.catalog import CatalogProduct
from swapfinder.services.product_types import product_text
from swapfinder.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")

# Keyword pattern over name + category + subcategory -> recipe categories
RECIPE_KEYWORD_MAP: tuple[tuple[str, tuple[str, ...]], ...] = (
    (r"cereal|loops|flakes|puffs|crunch", ("Kids Cereal", "Cereal")),
    (r"oats|oatmeal|porridge", ("Instant Oatmeal",)),
    (r"bar|protein bar|granola bar|nut bar", ("Snack Bars",)),
    (r"chips|crisps|tortilla|puffs|popcorn", ("Chips",)),
    (r"candy|chocolate|gummies|gummy", ("Candy",)),
    (r"juice|drink|lemonade", ("Juice Drinks",)),
    (r"sport.*drink|electrolyte|gatorade", ("Sports Drinks",)),
    (r"baby|infant|toddler|puree", ("Baby Snacks",)),
    (r"fruit snack|fruit roll|fruit leather", ("Fruit Snacks",)),
    (r"sauce|marinara|tomato sauce", ("Pasta Sauce",)),
    (r"mac.*cheese|macaroni", ("Mac & Cheese",)),
    (r"dressing|vinaigrette", ("Salad Dressing",)),
    (r"ketchup|mustard|mayo|condiment", ("Condiments",)),
    (r"frozen|pizza|nugget|waffle", ("Frozen Meals",)),
    (r"ice cream|popsicle|frozen treat", ("Frozen Treats",)),
    (r"pancake|waffle mix", ("Pancake Mix",)),
    (r"cheese dip|queso|nacho", ("Cheese Dips",)),
)


@dataclass
class RecipeSummary:
    id: int
    name: str
    description: str | None = None
    replaces_category: str | None = None
    prep_minutes: int | None = None


class RecipeSource(Protocol):
    async def for_product(self, product: CatalogProduct) -> list[RecipeSummary]: ...


def recipe_categories(product: CatalogProduct) -> list[str]:
    """Recipe categories a product may be replaced by (ordered, unique)."""
    categories: list[str] = [c for c in (product.category, product.subcategory) if c]
    text = product_text(product.name, product.category, product.subcategory)
    for pattern, mapped in RECIPE_KEYWORD_MAP:
        if re.search(pattern, text):
            categories.extend(mapped)
    return list(dict.fromkeys(categories))


def replaces_upc(raw: str | None, upc: str) -> bool:
    try:
        data = json.loads(raw or "[]")
    except (json.JSONDecodeError, TypeError):
        return False
    return isinstance(data, list) and upc in [str(x) for x in data]


class SqlRecipeSource:
    async def for_product(self, product: CatalogProduct) -> list[RecipeSummary]:
        """Matching recipes; any database failure yields []."""
        categories = recipe_categories(product)
        stmt = (
            select(Recipe)
            .where(
                or_(
                    Recipe.replaces_category.in_(categories),
                    Recipe.replaces_products_json.contains(f'"{product.upc}"'),
                )
            )
            .order_by(Recipe.name)
        )
        try:
            async with get_session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            logger.warning(f"Recipe lookup failed for {product.upc}: {e}")
            return []

        return [
            RecipeSummary(
                id=r.id,
                name=r.name,
                description=r.description,
                replaces_category=r.replaces_category,
                prep_minutes=r.prep_minutes,
            )
            for r in rows
            if r.replaces_category in categories or replaces_upc(r.replaces_products_json, product.upc)
        ]
