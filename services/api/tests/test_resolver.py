"""Tests for the tiered candidate resolver."""

from datetime import datetime, timedelta, timezone

import pytest

from fakes import FakeDiscovery, FakeSearchClient, InMemoryCatalog, product
from swapfinder.models import SwapOrigin
from swapfinder.services.catalog import CatalogProduct
from swapfinder.services.discovery import DynamicDiscovery
from swapfinder.services.errors import DiscoveryError
from swapfinder.services.off_client import OffProduct
from swapfinder.services.resolver import CandidateResolver
from swapfinder.services.scoring import EstimatedScorer
from swapfinder.services.swap_cache import SwapCache

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

LATER_TIERS = ("find_by_name_token", "list_by_subcategory", "search_text", "list_by_category")


def make_resolver(catalog: InMemoryCatalog, discovery=None, **kwargs) -> CandidateResolver:
    cache = SwapCache(catalog, clock=lambda: NOW)
    return CandidateResolver(catalog, cache, discovery if discovery is not None else FakeDiscovery(), **kwargs)


def lays() -> CatalogProduct:
    return product("C", "Lay's Potato Chips", 28, subcategory="chips", category="en:potato-chips")


class TestCuratedDirect:
    async def test_curated_list_resolves_exactly_and_short_circuits(self) -> None:
        a = product("A", "Sour Gummy Worms", 10, swaps_to=("B",))
        b = product("B", "Organic Fruit Gummies", 80)
        catalog = InMemoryCatalog([a, b])
        discovery = FakeDiscovery()
        resolver = make_resolver(catalog, discovery)

        result = await resolver.resolve(a)

        assert [p.upc for p in result] == ["B"]
        for method in LATER_TIERS:
            assert catalog.calls[method] == 0
        assert discovery.calls == []

    async def test_never_returns_self_or_unscored(self) -> None:
        a = product("A", "Sour Gummy Worms", 10, swaps_to=("A", "U", "B"))
        catalog = InMemoryCatalog([a, product("U", "Unscored Candy"), product("B", "Better Candy", 70)])

        result = await make_resolver(catalog).resolve(a)

        assert [p.upc for p in result] == ["B"]
        assert all(p.score is not None for p in result)

    async def test_keeps_editorial_order_and_caps_at_limit(self) -> None:
        swaps = tuple(f"S{i}" for i in range(7))
        a = product("A", "Candy", 10, swaps_to=swaps)
        catalog = InMemoryCatalog([a] + [product(u, f"Swap {u}", 50 + i) for i, u in enumerate(swaps)])

        result = await make_resolver(catalog).resolve(a, limit=5)

        assert [p.upc for p in result] == ["S0", "S1", "S2", "S3", "S4"]

    async def test_curated_list_with_only_unscored_entries_falls_through(self) -> None:
        c = product("C", "Lay's Potato Chips", 28, subcategory="chips", swaps_to=("U",))
        d = product("D", "Kettle Brand Potato Chips", 75, subcategory="chips")
        catalog = InMemoryCatalog([c, d, product("U", "Unscored Chips")])

        result = await make_resolver(catalog).resolve(c)

        assert [p.upc for p in result] == ["D"]

    async def test_stale_dynamic_list_is_not_trusted(self) -> None:
        a = product(
            "A",
            "Mystery Item",
            10,
            swaps_to=("B",),
            swap_origin=SwapOrigin.DYNAMIC,
            swap_discovered_at=NOW - timedelta(hours=100),
        )
        catalog = InMemoryCatalog([a, product("B", "Better", 90)])
        discovery = FakeDiscovery()

        result = await make_resolver(catalog, discovery).resolve(a)

        assert result == []
        assert len(discovery.calls) == 1

    async def test_fresh_dynamic_list_is_used(self) -> None:
        a = product(
            "A",
            "Mystery Item",
            10,
            swaps_to=("B",),
            swap_origin=SwapOrigin.DYNAMIC,
            swap_discovered_at=NOW - timedelta(hours=1),
        )
        catalog = InMemoryCatalog([a, product("B", "Better", 90)])
        discovery = FakeDiscovery()

        result = await make_resolver(catalog, discovery).resolve(a)

        assert [p.upc for p in result] == ["B"]
        assert discovery.calls == []


class TestSiblingCurated:
    async def test_uses_swap_list_of_duplicate_row(self) -> None:
        scanned = product("S1", "Skittles Original Bite Size Candies", 12, subcategory="candy")
        duplicate = product("S2", "Original Skittles", 12, swaps_to=("G",))
        better = product("G", "SmartSweets Sweet Fish", 68)
        catalog = InMemoryCatalog([scanned, duplicate, better])
        discovery = FakeDiscovery()

        result = await make_resolver(catalog, discovery).resolve(scanned)

        assert [p.upc for p in result] == ["G"]
        assert catalog.calls["find_by_name_token"] == 1
        assert catalog.calls["list_by_subcategory"] == 0
        assert discovery.calls == []

    async def test_most_specific_sibling_wins(self) -> None:
        scanned = product("X", "Skittles Wild Berry", 12)
        loose = product("L", "Skittles", 12, swaps_to=("G1",))
        close = product("K", "Skittles Wild Berry Share Size", 12, swaps_to=("G2",))
        catalog = InMemoryCatalog(
            [scanned, loose, close, product("G1", "Swap One", 60), product("G2", "Swap Two", 70)]
        )

        result = await make_resolver(catalog).resolve(scanned)

        assert [p.upc for p in result] == ["G2"]

    async def test_specific_sibling_is_found_among_many_shorter_names(self) -> None:
        scanned = product("X", "Skittles Wild Berry", 12)
        loose = [product(f"L{i}", f"Skittles {i}", 12, swaps_to=("G1",)) for i in range(12)]
        close = product("K", "Skittles Wild Berry Share Size", 12, swaps_to=("G2",))
        catalog = InMemoryCatalog(
            [scanned, close, *loose, product("G1", "Swap One", 60), product("G2", "Swap Two", 70)]
        )

        result = await make_resolver(catalog).resolve(scanned)

        assert [p.upc for p in result] == ["G2"]

    async def test_sibling_list_never_yields_the_scanned_product(self) -> None:
        scanned = product("S1", "Skittles Original", 12)
        duplicate = product("S2", "Original Skittles", 12, swaps_to=("S1",))
        catalog = InMemoryCatalog([scanned, duplicate])

        result = await make_resolver(catalog).resolve(scanned)

        assert result == []


class TestTypeClassified:
    async def test_subcategory_and_type_match(self) -> None:
        c = lays()
        d = product("D", "Kettle Brand Potato Chips", 75, subcategory="chips")
        catalog = InMemoryCatalog([c, d])

        result = await make_resolver(catalog).resolve(c)

        assert [p.upc for p in result] == ["D"]
        assert catalog.calls["search_text"] == 0

    async def test_excluded_keyword_vetoes_candidate(self) -> None:
        c = lays()
        cookie = product("K", "Chocolate Chip Cookies", 90, subcategory="chips")
        catalog = InMemoryCatalog([c, cookie])

        result = await make_resolver(catalog).resolve(c)

        assert result == []

    async def test_threshold_is_strictly_above_original_score(self) -> None:
        c = product("C", "Lay's Potato Chips", 60, subcategory="chips")
        same = product("S", "Sea Salt Potato Chips", 60, subcategory="chips")
        better = product("B", "Avocado Oil Potato Chips", 61, subcategory="chips")
        catalog = InMemoryCatalog([c, same, better])

        result = await make_resolver(catalog).resolve(c)

        assert [p.upc for p in result] == ["B"]

    async def test_threshold_floor_applies_to_low_scored_products(self) -> None:
        c = lays()
        weak = product("W", "Cheesy Potato Chips", 40, subcategory="chips")
        catalog = InMemoryCatalog([c, weak])

        result = await make_resolver(catalog, min_score=40).resolve(c)

        assert result == []

    async def test_text_search_fallback(self) -> None:
        doritos = product("DR", "Doritos Nacho Cheese", 20, subcategory="snacks")
        siete = product("SI", "Siete Grain Free Tortilla Chips", 80, subcategory="tortilla chips")
        catalog = InMemoryCatalog([doritos, siete])

        result = await make_resolver(catalog).resolve(doritos)

        assert [p.upc for p in result] == ["SI"]
        assert catalog.calls["list_by_subcategory"] == 1
        assert catalog.calls["search_text"] == 1
        assert catalog.calls["list_by_category"] == 0

    async def test_category_fallback(self) -> None:
        pringles = product("PR", "Pringles Original", 20, category="en:potato-crisps")
        other = product("OT", "Olive Oil Crisps", 70, category="en:potato-crisps")
        catalog = InMemoryCatalog([pringles, other])

        result = await make_resolver(catalog).resolve(pringles)

        assert [p.upc for p in result] == ["OT"]
        assert catalog.calls["list_by_category"] == 1

    async def test_failing_curated_store_does_not_block_later_tiers(self) -> None:
        c = lays()
        d = product("D", "Kettle Brand Potato Chips", 75, subcategory="chips")
        catalog = InMemoryCatalog([c, d], failing=["get_curated_swaps"])

        result = await make_resolver(catalog).resolve(c)

        assert [p.upc for p in result] == ["D"]


class TestDiscoveryTier:
    async def test_unmatched_product_returns_empty_and_discovers_once(self) -> None:
        e = product("E", "Mystery Item", 30)
        catalog = InMemoryCatalog([e, product("Z", "Unrelated Thing", 90)])
        discovery = FakeDiscovery()

        result = await make_resolver(catalog, discovery).resolve(e)

        assert result == []
        assert discovery.calls == [("E", "E", 5)]

    async def test_discovery_failure_degrades_to_empty(self) -> None:
        e = product("E", "Mystery Item", 30)
        discovery = FakeDiscovery(error=DiscoveryError("boom"))

        result = await make_resolver(InMemoryCatalog([e]), discovery).resolve(e)

        assert result == []
        assert len(discovery.calls) == 1

    async def test_discovery_results_are_filtered(self) -> None:
        e = product("E", "Mystery Item", 30)
        discovery = FakeDiscovery([e, product("N", "New", None), product("G", "Good", 80)])

        result = await make_resolver(InMemoryCatalog([e]), discovery).resolve(e)

        assert [p.upc for p in result] == ["G"]

    async def test_disabled_discovery_is_never_called(self) -> None:
        e = product("E", "Mystery Item", 30)
        discovery = FakeDiscovery([product("G", "Good", 80)])

        result = await make_resolver(InMemoryCatalog([e]), discovery, discovery_enabled=False).resolve(e)

        assert result == []
        assert discovery.calls == []

    async def test_discovered_swaps_are_served_from_cache_next_time(self) -> None:
        c = product("0000000000001", "Lay's Potato Chips", 28, subcategory="chips")
        catalog = InMemoryCatalog([c])
        client = FakeSearchClient(
            [
                OffProduct(
                    code="850001",
                    product_name="Organic Sea Salt Potato Chips",
                    brands="Good Chips Co",
                    nutriscore_grade="b",
                    nova_group=3,
                    categories_tags=["en:potato-chips"],
                    labels_tags=["en:organic"],
                ),
            ]
        )
        cache = SwapCache(catalog, clock=lambda: NOW)
        discovery = DynamicDiscovery(catalog, client, EstimatedScorer(), cache)
        resolver = CandidateResolver(catalog, cache, discovery)

        first = await resolver.resolve(c)
        second = await resolver.resolve(c)

        assert [p.upc for p in first] == ["0000000850001"]
        assert [p.upc for p in second] == ["0000000850001"]
        assert len(client.queries) == 1
        assert catalog.products[c.upc].swap_origin == SwapOrigin.DYNAMIC

    async def test_discovery_never_replaces_an_editorial_list(self) -> None:
        # Editorial entry exists but is not scored yet, so tier 1 comes back empty
        c = product("0000000000001", "Lay's Potato Chips", 28, subcategory="chips", swaps_to=("PENDING",))
        catalog = InMemoryCatalog([c, product("PENDING", "Unscored Swap")])
        client = FakeSearchClient(
            [
                OffProduct(
                    code="850001",
                    product_name="Organic Sea Salt Potato Chips",
                    brands="Good Chips Co",
                    nutriscore_grade="b",
                    nova_group=3,
                    categories_tags=["en:potato-chips"],
                ),
            ]
        )
        cache = SwapCache(catalog, clock=lambda: NOW)
        resolver = CandidateResolver(catalog, cache, DynamicDiscovery(catalog, client, EstimatedScorer(), cache))

        result = await resolver.resolve(c)

        assert [p.upc for p in result] == ["0000000850001"]
        row = catalog.products[c.upc]
        assert row.swaps_to == ("PENDING",)
        assert row.swap_origin != SwapOrigin.DYNAMIC
        assert await catalog.clear_dynamic_swaps(c.upc) is False
        assert catalog.products[c.upc].swaps_to == ("PENDING",)


@pytest.mark.parametrize(
    "scanned",
    [
        product("A", "Sour Gummy Worms", 10, swaps_to=("A", "B")),
        product("C", "Lay's Potato Chips", 28, subcategory="chips"),
        product("E", "Mystery Item", 30),
    ],
)
async def test_result_never_contains_input_and_is_scored(scanned) -> None:
    catalog = InMemoryCatalog(
        [
            scanned,
            product("B", "Better Gummies", 70),
            product("D", "Kettle Brand Potato Chips", 75, subcategory="chips"),
        ]
    )
    discovery = FakeDiscovery([scanned, product("G", "Good", 80)])

    result = await make_resolver(catalog, discovery).resolve(scanned)

    assert scanned.upc not in [p.upc for p in result]
    assert all(p.score is not None for p in result)
