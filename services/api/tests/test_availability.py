"""Tests for availability fusion across community, crawl and curated sources."""

from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql

from fakes import FakeSources
from swapfinder.services.availability import (
    CURATED_DISCLAIMER,
    AvailabilityAggregator,
    AvailabilityRecord,
    AvailabilityTier,
    SqlAvailabilitySources,
    price_as_of,
)
from swapfinder.services.dedup import canonical_store_name


def community(name: str, count: int = 1) -> AvailabilityRecord:
    return AvailabilityRecord(store_name=name, source_tier=AvailabilityTier.COMMUNITY, corroboration_count=count)


def crawl(name: str, price: float = 3.99) -> AvailabilityRecord:
    crawled = datetime(2026, 10, 19, tzinfo=timezone.utc)
    return AvailabilityRecord(
        store_name=name,
        source_tier=AvailabilityTier.CRAWL,
        price=price,
        as_of=crawled,
        disclaimer=price_as_of(crawled),
    )


def curated(name: str) -> AvailabilityRecord:
    return AvailabilityRecord(store_name=name, source_tier=AvailabilityTier.CURATED, disclaimer=CURATED_DISCLAIMER)


async def test_sources_are_merged_in_priority_order() -> None:
    sources = FakeSources(
        community=[community("Trader Joe's", 4)],
        crawl=[crawl("Kroger")],
        curated=[curated("Target")],
    )

    records = await AvailabilityAggregator(sources).aggregate("U1")

    assert [r.store_name for r in records] == ["Trader Joe's", "Kroger", "Target"]
    assert [r.source_tier for r in records] == [
        AvailabilityTier.COMMUNITY,
        AvailabilityTier.CRAWL,
        AvailabilityTier.CURATED,
    ]


async def test_earlier_tier_keeps_the_store() -> None:
    sources = FakeSources(
        community=[community("Trader Joe's", 4)],
        crawl=[crawl("TRADER JOES")],
        curated=[curated("trader joe’s"), curated("Whole Foods")],
    )

    records = await AvailabilityAggregator(sources).aggregate("U1")

    assert [r.store_name for r in records] == ["Trader Joe's", "Whole Foods"]
    assert records[0].source_tier == AvailabilityTier.COMMUNITY
    keys = [canonical_store_name(r.store_name) for r in records]
    assert len(keys) == len(set(keys))


async def test_cap_stops_querying_lower_tiers() -> None:
    sources = FakeSources(
        community=[community(n) for n in ("A Mart", "B Mart", "C Mart")],
        crawl=[crawl(n) for n in ("D Mart", "E Mart", "F Mart")],
        curated=[curated("G Mart")],
    )

    records = await AvailabilityAggregator(sources).aggregate("U1")

    assert [r.store_name for r in records] == ["A Mart", "B Mart", "C Mart", "D Mart", "E Mart"]
    assert sources.calls["curated"] == 0


async def test_full_community_tier_skips_crawl() -> None:
    sources = FakeSources(community=[community(f"Store {c}") for c in "ABCDEF"])

    records = await AvailabilityAggregator(sources, cap=5).aggregate("U1")

    assert len(records) == 5
    assert sources.calls["crawl"] == 0
    assert sources.calls["curated"] == 0


async def test_explicit_cap_overrides_default() -> None:
    sources = FakeSources(curated=[curated(n) for n in ("Aldi", "Costco", "Kroger")])

    records = await AvailabilityAggregator(sources).aggregate("U1", cap=2)

    assert [r.store_name for r in records] == ["Aldi", "Costco"]


async def test_failing_source_contributes_nothing() -> None:
    sources = FakeSources(
        community=[community("Sprouts")],
        crawl=[crawl("Kroger")],
        curated=[curated("Target")],
        failing=["crawl"],
    )

    records = await AvailabilityAggregator(sources).aggregate("U1")

    assert [r.store_name for r in records] == ["Sprouts", "Target"]


async def test_all_sources_failing_returns_empty() -> None:
    sources = FakeSources(failing=["community", "crawl", "curated"])

    assert await AvailabilityAggregator(sources).aggregate("U1") == []


async def test_blank_store_names_are_skipped() -> None:
    sources = FakeSources(community=[community("  "), community("Safeway")])

    records = await AvailabilityAggregator(sources).aggregate("U1")

    assert [r.store_name for r in records] == ["Safeway"]


async def test_name_is_passed_to_crawl_lookup() -> None:
    sources = FakeSources()

    await AvailabilityAggregator(sources).aggregate("U1", name="Kettle Chips")

    assert sources.crawl_names == ["Kettle Chips"]


def test_price_as_of_format() -> None:
    assert price_as_of(datetime(2026, 10, 19)) == "Price as of Oct 19"
    assert price_as_of(datetime(2026, 3, 5)) == "Price as of Mar 5"


def test_crawl_name_match_escapes_like_wildcards() -> None:
    stmt = SqlAvailabilitySources().crawl_query("U1", "100% Juice_Box", 5)
    compiled = stmt.compile(dialect=postgresql.dialect())

    assert "ESCAPE '/'" in str(compiled)
    assert "100/% Juice/_Box" in compiled.params.values()


def test_crawl_query_without_name_matches_identifier_only() -> None:
    compiled = SqlAvailabilitySources().crawl_query("U1", None, 5).compile(dialect=postgresql.dialect())

    assert "ESCAPE" not in str(compiled)
    assert "U1" in compiled.params.values()
