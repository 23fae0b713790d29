import httpx
import pytest

from swapfinder.services.errors import DiscoveryError
from swapfinder.services.off_client import OpenFoodFactsClient, SearchConstraints


def make_client(handler) -> OpenFoodFactsClient:
    client = OpenFoodFactsClient(
        base_url="http://off.test",
        user_agent="swapfinder-tests",
        timeout=1.0,
        country="united-states",
        cache_ttl_seconds=60,
    )
    client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def item(code: str, name: str, **extra) -> dict:
    return {"code": code, "product_name": name, "nutriscore_grade": "b", **extra}


def test_parse_product_normalizes_fields() -> None:
    client = OpenFoodFactsClient(base_url="http://off.test")
    parsed = client._parse_product(
        {
            "code": " 850001 ",
            "product_name": "Organic Potato Chips",
            "brands": "",
            "nutriscore_grade": "B",
            "nova_group": "3",
            "categories_tags": ["en:snacks", "en:potato-chips"],
            "labels_tags": ["en:USDA-Organic"],
        }
    )
    assert parsed is not None
    assert parsed.code == "850001"
    assert parsed.brands is None
    assert parsed.nutriscore_grade == "b"
    assert parsed.nova_group == 3
    assert parsed.is_organic
    assert "potato-chips" in parsed.categories_text


@pytest.mark.parametrize(
    "raw",
    [
        {"code": "", "product_name": "No Code"},
        {"code": "123", "product_name": ""},
        {"code": "123"},
    ],
)
def test_parse_product_requires_code_and_name(raw: dict) -> None:
    assert OpenFoodFactsClient(base_url="http://off.test")._parse_product(raw) is None


def test_parse_product_drops_invalid_grade_and_nova() -> None:
    parsed = OpenFoodFactsClient(base_url="http://off.test")._parse_product(
        {"code": "1", "product_name": "X", "nutriscore_grade": "not-applicable", "nova_group": "n/a"}
    )
    assert parsed is not None
    assert parsed.nutriscore_grade is None
    assert parsed.nova_group is None


async def test_search_runs_category_then_keyword_queries() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "search_terms" in request.url.params:
            return httpx.Response(200, json={"products": [item("3", "Keyword Chips"), item("1", "Dup Chips")]})
        return httpx.Response(200, json={"products": [item("1", "Category Chips"), item("2", "Other Chips")]})

    client = make_client(handler)
    results = await client.search(
        "organic chips",
        SearchConstraints(category_tags=("en:potato-chips", "en:tortilla-chips", "en:ignored"), exclude_code="2"),
    )

    assert [r.code for r in results] == ["1", "3"]
    assert len(requests) == 3
    first = requests[0].url.params
    assert first["tag_0"] == "en:potato-chips"
    assert first["tag_1"] == "united-states"
    assert first["sort_by"] == "nutriscore_score"
    assert requests[2].url.params["search_terms"] == "organic chips"
    await client.close()


async def test_search_skips_keyword_query_when_enough_candidates() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"products": [item(str(i), f"Chips {i}") for i in range(12)]})

    client = make_client(handler)
    results = await client.search("organic chips", SearchConstraints(category_tags=("en:potato-chips",)))

    assert len(results) == 12
    assert len(requests) == 1
    await client.close()


async def test_search_survives_partial_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "search_terms" in request.url.params:
            return httpx.Response(200, json={"products": [item("3", "Keyword Chips")]})
        return httpx.Response(503)

    client = make_client(handler)
    results = await client.search("organic chips", SearchConstraints(category_tags=("en:potato-chips",)))

    assert [r.code for r in results] == ["3"]
    await client.close()


async def test_search_raises_when_every_request_fails() -> None:
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(DiscoveryError):
        await client.search("organic chips", SearchConstraints(category_tags=("en:potato-chips",)))
    await client.close()
