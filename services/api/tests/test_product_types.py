"""Tests for the product type taxonomy and classifier."""

import dataclasses
import re

import pytest

from swapfinder.services.product_types import (
    PRODUCT_TYPES,
    ProductType,
    classify,
    get_product_type,
    infer_type_from_category,
    matches_type,
)


def test_taxonomy_ids_are_unique_and_keywords_present() -> None:
    ids = [t.id for t in PRODUCT_TYPES]
    assert len(ids) == len(set(ids))
    assert len(PRODUCT_TYPES) >= 24
    for t in PRODUCT_TYPES:
        assert t.must_contain
        assert t.fallback_search_phrase


def test_taxonomy_is_immutable() -> None:
    assert isinstance(PRODUCT_TYPES, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        PRODUCT_TYPES[0].label = "changed"  # type: ignore[misc]


def test_product_type_requires_must_contain() -> None:
    with pytest.raises(ValueError):
        ProductType(
            id="empty",
            label="Empty",
            pattern=re.compile("x"),
            must_contain=(),
            exclude=(),
            fallback_search_phrase="x",
        )


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("lay's potato chips", "chips"),
        ("doritos nacho cheese", "chips"),
        ("froot loops cereal", "cereal-fruity"),
        ("honey nut cheerios", "cereal-general"),
        ("chocolate chip granola bar", "granola-bar"),
        ("chips ahoy chocolate chip cookies", "cookies"),
        ("goldfish crackers", "crackers"),
        ("kraft macaroni & cheese", "mac-cheese"),
        ("skittles original", "candy-fruity"),
        ("heinz tomato ketchup", "ketchup"),
        ("digiorno frozen pizza", "frozen-pizza"),
    ],
)
def test_classify(text: str, expected: str) -> None:
    result = classify(text)
    assert result is not None
    assert result.id == expected


def test_classify_unknown_text() -> None:
    assert classify("mystery item") is None
    assert classify("") is None
    assert classify(None) is None


def test_classify_is_deterministic() -> None:
    assert classify("chocolate chip granola bar") is classify("chocolate chip granola bar")


def test_first_declared_type_wins() -> None:
    # Both the cookies and the chips patterns match; cookies is declared first
    cookies = get_product_type("cookies")
    chips = get_product_type("chips")
    assert cookies is not None and chips is not None
    assert PRODUCT_TYPES.index(cookies) < PRODUCT_TYPES.index(chips)
    assert chips.pattern.search("chips ahoy chocolate chip cookies")
    assert classify("chips ahoy chocolate chip cookies") is cookies


class TestMatchesType:
    def test_required_keyword(self) -> None:
        chips = get_product_type("chips")
        assert chips is not None
        assert matches_type("kettle brand potato chips", chips)
        assert not matches_type("rice cakes", chips)

    def test_exclusion_vetoes_inclusion(self) -> None:
        chips = get_product_type("chips")
        assert chips is not None
        assert not matches_type("chocolate chip cookie", chips)

    def test_cookie_does_not_satisfy_crackers(self) -> None:
        crackers = get_product_type("crackers")
        assert crackers is not None
        assert not matches_type("cookie cracker sandwich", crackers)

    def test_category_text_can_supply_required_keyword(self) -> None:
        chips = get_product_type("chips")
        assert chips is not None
        assert not matches_type("sea salt kettle", chips)
        assert matches_type("sea salt kettle", chips, category_text="en:potato-chips")

    def test_category_text_cannot_override_exclusion(self) -> None:
        chips = get_product_type("chips")
        assert chips is not None
        assert not matches_type("salsa verde", chips, category_text="en:tortilla-chips")


class TestInferTypeFromCategory:
    def test_matches_external_category(self) -> None:
        result = infer_type_from_category("en:energy-bars")
        assert result is not None
        assert result.id == "protein-bar"

    def test_unknown_or_empty(self) -> None:
        assert infer_type_from_category(None) is None
        assert infer_type_from_category("en:") is None
        assert infer_type_from_category("en:lawn-furniture") is None
