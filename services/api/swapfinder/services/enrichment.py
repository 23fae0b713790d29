"""Attach score delta, savings, rating and availability to resolved swaps."""

import asyncio
from dataclasses import dataclass, field

from swapfinder.services.availability import AvailabilityAggregator, AvailabilityRecord
from swapfinder.services.catalog import CatalogProduct
from swapfinder.services.recipes import RecipeSummary
from swapfinder.services.scoring import ScoreRating, get_score_rating


@dataclass
class RatedProduct:
    product: CatalogProduct
    rating: ScoreRating


@dataclass
class SwapCandidate:
    product: CatalogProduct
    rating: ScoreRating
    score_improvement: int
    savings_potential: float | None
    availability: list[AvailabilityRecord] = field(default_factory=list)


@dataclass
class SwapsResult:
    original: RatedProduct
    swaps: list[SwapCandidate]
    homemade_alternatives: list[RecipeSummary] = field(default_factory=list)


def score_improvement(original: CatalogProduct, candidate: CatalogProduct) -> int:
    return (candidate.score or 0) - (original.score or 0)


def savings_potential(original: CatalogProduct, candidate: CatalogProduct) -> float | None:
    """Price difference (positive = cheaper swap) when both prices are known."""
    if original.typical_price is None or candidate.typical_price is None:
        return None
    return round(original.typical_price - candidate.typical_price, 2)


class ResultEnricher:
    def __init__(self, aggregator: AvailabilityAggregator, *, availability_cap: int = 5):
        self.aggregator = aggregator
        self.availability_cap = availability_cap

    async def enrich(self, original: CatalogProduct, candidates: list[CatalogProduct]) -> list[SwapCandidate]:
        # Candidates are independent; gather their availability in parallel
        availability = await asyncio.gather(
            *(
                self.aggregator.aggregate(c.upc, cap=self.availability_cap, name=c.name)
                for c in candidates
            )
        )
        return [
            SwapCandidate(
                product=c,
                rating=get_score_rating(c.score),
                score_improvement=score_improvement(original, c),
                savings_potential=savings_potential(original, c),
                availability=stores,
            )
            for c, stores in zip(candidates, availability)
        ]

    @staticmethod
    def rate(product: CatalogProduct) -> RatedProduct:
        return RatedProduct(product=product, rating=get_score_rating(product.score))
