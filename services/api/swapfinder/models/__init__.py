"""SQLAlchemy ORM models.

Models represent database tables:
- products: Catalog products with scores and swap lists
- local_sightings / flyer_availability / curated_availability: Availability sources
- recipes: Homemade alternatives
"""

from swapfinder.models.availability import CuratedAvailability, FlyerListing, LocalSighting
from swapfinder.models.product import Product, SwapOrigin
from swapfinder.models.recipe import Recipe

__all__ = ["CuratedAvailability", "FlyerListing", "LocalSighting", "Product", "Recipe", "SwapOrigin"]
