#!/usr/bin/env python3
"""Seed database with demo data.

Creates:
- A small product catalog (popular products + healthier swaps)
- Editorial swap lists for a few products
- Curated store availability for the swap products
- Homemade alternative recipes

The seed script is idempotent: existing rows (by UPC / name) are skipped.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import json
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from swapfinder.models import CuratedAvailability, Product, Recipe, SwapOrigin
from swapfinder.services.dedup import canonical_store_name
from swapfinder.settings import get_settings

load_dotenv()

# ============================================================
# Catalog
# ============================================================

PRODUCTS = [
    # Popular products (swaps are attached below)
    {"upc": "0040000001607", "name": "Skittles Original Bite Size Candies", "brand": "Skittles",
     "category": "en:candies", "subcategory": "candy", "total_score": 12, "typical_price": 2.49},
    {"upc": "0040000004325", "name": "Original Skittles", "brand": "Skittles",
     "category": "en:candies", "subcategory": "candy", "total_score": 12, "typical_price": 3.99},
    {"upc": "0028400090858", "name": "Lay's Classic Potato Chips", "brand": "Lay's",
     "category": "en:potato-chips", "subcategory": "chips", "total_score": 28, "typical_price": 4.29},
    {"upc": "0038000596551", "name": "Froot Loops Cereal", "brand": "Kellogg's",
     "category": "en:breakfast-cereals", "subcategory": "cereal", "total_score": 18, "typical_price": 4.99},
    {"upc": "0016000275287", "name": "Fruit by the Foot Fruit Snacks", "brand": "Betty Crocker",
     "category": "en:fruit-snacks", "subcategory": "fruit snacks", "total_score": 15, "typical_price": 3.49},
    # Healthier alternatives
    {"upc": "0852565003021", "name": "SmartSweets Sweet Fish", "brand": "SmartSweets",
     "category": "en:candies", "subcategory": "candy", "total_score": 68, "typical_price": 3.79,
     "nutriscore_grade": "c", "nova_group": 3},
    {"upc": "0850026009033", "name": "YumEarth Organic Sour Beans", "brand": "YumEarth",
     "category": "en:candies", "subcategory": "candy", "total_score": 62, "typical_price": 3.29,
     "is_organic": True, "nutriscore_grade": "d", "nova_group": 3},
    {"upc": "0084114032218", "name": "Kettle Brand Sea Salt Potato Chips", "brand": "Kettle Brand",
     "category": "en:potato-chips", "subcategory": "chips", "total_score": 75, "typical_price": 3.99,
     "nutriscore_grade": "c", "nova_group": 3},
    {"upc": "0853522000207", "name": "Siete Sea Salt Grain Free Tortilla Chips", "brand": "Siete",
     "category": "en:tortilla-chips", "subcategory": "chips", "total_score": 80, "typical_price": 4.99,
     "nutriscore_grade": "b", "nova_group": 3},
    {"upc": "0058449890018", "name": "Nature's Path Organic Fruit Juice Sweetened Corn Flakes",
     "brand": "Nature's Path", "category": "en:breakfast-cereals", "subcategory": "cereal",
     "total_score": 72, "typical_price": 5.49, "is_organic": True, "nutriscore_grade": "b", "nova_group": 3},
    {"upc": "0884912180226", "name": "Annie's Organic Bunny Fruit Snacks", "brand": "Annie's",
     "category": "en:fruit-snacks", "subcategory": "fruit snacks", "total_score": 58, "typical_price": 4.49,
     "is_organic": True, "nutriscore_grade": "d", "nova_group": 3},
]

# Editorial swap lists (product UPC -> ordered swap UPCs)
EDITORIAL_SWAPS = {
    "0040000001607": ["0852565003021", "0850026009033"],
    "0016000275287": ["0884912180226"],
}

# Chains known to carry the swap products
CURATED_STORES = {
    "0852565003021": ["Target", "Whole Foods Market", "Kroger", "Walmart"],
    "0850026009033": ["Whole Foods Market", "Sprouts Farmers Market", "Target"],
    "0084114032218": ["Kroger", "Safeway", "Target", "Walmart", "Publix"],
    "0853522000207": ["Whole Foods Market", "Trader Joe's", "Target", "Sprouts Farmers Market"],
    "0058449890018": ["Whole Foods Market", "Sprouts Farmers Market", "Kroger"],
    "0884912180226": ["Target", "Walmart", "Kroger", "Whole Foods Market"],
}

RECIPES = [
    {"name": "Baked Apple Chips", "description": "Thin-sliced apples baked low and slow with cinnamon.",
     "replaces_category": "Chips", "prep_minutes": 90},
    {"name": "Homemade Fruit Leather", "description": "Pureed strawberries and applesauce dried into strips.",
     "replaces_category": "Fruit Snacks", "prep_minutes": 360,
     "replaces_products": ["0016000275287"]},
    {"name": "Crunchy Honey Oat Clusters", "description": "Oats, honey and puffed rice baked into clusters.",
     "replaces_category": "Kids Cereal", "prep_minutes": 30},
    {"name": "Frozen Yogurt Bark", "description": "Greek yogurt and berries frozen on a sheet pan.",
     "replaces_category": "Candy", "prep_minutes": 15},
]


async def seed_database() -> None:
    """Seed database with demo data."""
    engine = create_async_engine(get_settings().async_database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        print("🌱 Seeding database...")

        print("\n🛒 Creating products...")
        await seed_products(session)

        print("\n🔁 Attaching editorial swaps...")
        await seed_editorial_swaps(session)

        print("\n🏪 Creating curated availability...")
        await seed_curated_stores(session)

        print("\n🍳 Creating recipes...")
        await seed_recipes(session)

        await session.commit()
        print("\n✅ Database seeded successfully!")

    await engine.dispose()


async def seed_products(session: AsyncSession) -> None:
    for p in PRODUCTS:
        result = await session.execute(select(Product).where(Product.upc == p["upc"]))
        if result.scalar_one_or_none():
            print(f"  ⏭️  {p['name']} (exists)")
            continue
        session.add(Product(**p))
        print(f"  ✅ {p['name']} ({p['total_score']})")
    await session.flush()


async def seed_editorial_swaps(session: AsyncSession) -> None:
    for upc, swaps in EDITORIAL_SWAPS.items():
        result = await session.execute(select(Product).where(Product.upc == upc))
        product = result.scalar_one_or_none()
        if product is None:
            print(f"  ⚠️  Product not found: {upc}")
            continue
        if product.swap_origin == SwapOrigin.EDITORIAL.value:
            print(f"  ⏭️  {product.name} (exists)")
            continue
        product.swaps_to_json = json.dumps(swaps)
        product.swap_origin = SwapOrigin.EDITORIAL.value
        print(f"  ✅ {product.name} -> {len(swaps)} swaps")


async def seed_curated_stores(session: AsyncSession) -> None:
    for upc, stores in CURATED_STORES.items():
        result = await session.execute(
            select(CuratedAvailability.store_name).where(CuratedAvailability.upc == upc)
        )
        existing = {canonical_store_name(name) for name in result.scalars().all()}
        added = 0
        for store in stores:
            if canonical_store_name(store) in existing:
                continue
            session.add(CuratedAvailability(upc=upc, store_name=store))
            added += 1
        print(f"  ✅ {upc}: {added} added, {len(existing)} existing")


async def seed_recipes(session: AsyncSession) -> None:
    for r in RECIPES:
        result = await session.execute(select(Recipe).where(Recipe.name == r["name"]))
        if result.scalar_one_or_none():
            print(f"  ⏭️  {r['name']} (exists)")
            continue
        session.add(
            Recipe(
                name=r["name"],
                description=r["description"],
                replaces_category=r["replaces_category"],
                replaces_products_json=json.dumps(r.get("replaces_products", [])),
                prep_minutes=r["prep_minutes"],
            )
        )
        print(f"  ✅ {r['name']} (replaces {r['replaces_category']})")


if __name__ == "__main__":
    asyncio.run(seed_database())
