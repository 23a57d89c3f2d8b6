from collections.abc import Callable
from decimal import Decimal
from typing import Any

import httpx
import pytest

from cryptoview.adapters.coingecko import CoinGeckoAdapter
from cryptoview.config import APISettings
from cryptoview.errors import NetworkError, ResponseParseError
from cryptoview.models import HistoryInterval, PricePoint

Handler = Callable[[httpx.Request], httpx.Response]

BITCOIN_SUMMARY: dict[str, Any] = {
    "id": "bitcoin",
    "symbol": "btc",
    "name": "Bitcoin",
    "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
    "current_price": 42000.5,
    "market_cap": 823000000000,
    "price_change_percentage_24h": -1.23456,
}
ETHEREUM_SUMMARY: dict[str, Any] = {
    "id": "ethereum",
    "symbol": "eth",
    "name": "Ethereum",
    "image": "https://assets.coingecko.com/coins/images/279/large/ethereum.png",
    "current_price": 2250.123456,
    "market_cap": 270000000000,
    "price_change_percentage_24h": 2.5,
}


def make_adapter(
    handler: Handler, requests: list[httpx.Request] | None = None
) -> CoinGeckoAdapter:
    """Builds an adapter whose HTTP client is served by `handler`."""

    def recording_handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return CoinGeckoAdapter(client, APISettings())


@pytest.mark.asyncio
async def test_ranked_coins_request_uses_fixed_query() -> None:
    """The markets query carries the configured, fixed parameters."""
    requests: list[httpx.Request] = []
    adapter = make_adapter(lambda _: httpx.Response(200, json=[]), requests)

    coins = await adapter.fetch_ranked_coins()

    assert coins == []
    assert len(requests) == 1
    request = requests[0]
    assert request.method == "GET"
    assert request.url.host == "api.coingecko.com"
    assert request.url.path == "/api/v3/coins/markets"
    assert dict(request.url.params) == {
        "vs_currency": "usd",
        "category": "layer-1",
        "order": "market_cap_desc",
        "per_page": "50",
        "price_change_percentage": "24h",
        "precision": "6",
    }


@pytest.mark.asyncio
async def test_ranked_coins_are_decoded_in_upstream_order() -> None:
    adapter = make_adapter(
        lambda _: httpx.Response(200, json=[BITCOIN_SUMMARY, ETHEREUM_SUMMARY])
    )

    coins = await adapter.fetch_ranked_coins()

    assert [c.id for c in coins] == ["bitcoin", "ethereum"]
    bitcoin = coins[0]
    assert bitcoin.name == "Bitcoin"
    assert bitcoin.symbol == "btc"
    assert bitcoin.current_price == Decimal("42000.5")
    assert bitcoin.market_cap == Decimal(823000000000)
    assert bitcoin.price_change_percentage_24h == Decimal("-1.23456")
    assert bitcoin.image is not None
    assert coins[1].current_price == Decimal("2250.123456")


@pytest.mark.asyncio
async def test_ranked_coins_are_not_reordered_locally() -> None:
    """Whatever order the upstream delivers is the order returned."""
    adapter = make_adapter(
        lambda _: httpx.Response(200, json=[ETHEREUM_SUMMARY, BITCOIN_SUMMARY])
    )

    coins = await adapter.fetch_ranked_coins()

    assert [c.id for c in coins] == ["ethereum", "bitcoin"]


@pytest.mark.asyncio
async def test_null_numeric_fields_are_tolerated() -> None:
    entry = {
        **BITCOIN_SUMMARY,
        "current_price": None,
        "market_cap": None,
        "price_change_percentage_24h": None,
        "image": None,
    }
    adapter = make_adapter(lambda _: httpx.Response(200, json=[entry]))

    (coin,) = await adapter.fetch_ranked_coins()

    assert coin.current_price is None
    assert coin.market_cap is None
    assert coin.price_change_percentage_24h is None
    assert coin.image is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"error": "not a list"},
        [{"symbol": "btc", "name": "Bitcoin"}],
        [{**BITCOIN_SUMMARY, "name": 42}],
        ["bitcoin"],
        [BITCOIN_SUMMARY, BITCOIN_SUMMARY],
    ],
    ids=["object", "missing-id", "bad-name", "non-object-entry", "duplicate-id"],
)
async def test_malformed_collection_fails_as_a_whole(body: Any) -> None:
    adapter = make_adapter(lambda _: httpx.Response(200, json=body))

    with pytest.raises(ResponseParseError):
        await adapter.fetch_ranked_coins()


@pytest.mark.asyncio
async def test_non_2xx_status_raises_network_error() -> None:
    adapter = make_adapter(lambda _: httpx.Response(429, json={"status": "limited"}))

    with pytest.raises(NetworkError) as exc_info:
        await adapter.fetch_ranked_coins()

    assert exc_info.value.status_code == 429
    assert not isinstance(exc_info.value, ResponseParseError)


@pytest.mark.asyncio
async def test_transport_errors_raise_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    adapter = make_adapter(handler)

    with pytest.raises(NetworkError) as exc_info:
        await adapter.fetch_ranked_coins()

    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_json_raises_parse_error() -> None:
    adapter = make_adapter(lambda _: httpx.Response(200, content=b"<html>oops</html>"))

    with pytest.raises(ResponseParseError):
        await adapter.fetch_ranked_coins()


@pytest.mark.asyncio
async def test_coin_detail_is_decoded() -> None:
    requests: list[httpx.Request] = []
    body = {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "market_data": {"current_price": {"usd": 42000.5, "eur": 38500, "xyz": None}},
    }
    adapter = make_adapter(lambda _: httpx.Response(200, json=body), requests)

    detail = await adapter.fetch_coin_detail("bitcoin")

    assert requests[0].url.path == "/api/v3/coins/bitcoin"
    assert detail.id == "bitcoin"
    assert detail.name == "Bitcoin"
    assert detail.symbol == "btc"
    assert detail.price_in("usd") == Decimal("42000.5")
    assert detail.price_in("EUR") == Decimal(38500)
    assert detail.price_in("xyz") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"},
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "market_data": {}},
        {
            "id": "bitcoin",
            "symbol": "btc",
            "name": "Bitcoin",
            "market_data": {"current_price": {"eur": 1}},
        },
        {
            "id": "bitcoin",
            "symbol": "btc",
            "market_data": {"current_price": {"usd": 1}},
        },
        [],
    ],
    ids=["no-market-data", "no-current-price", "no-usd", "no-name", "not-object"],
)
async def test_malformed_detail_raises_parse_error(body: Any) -> None:
    adapter = make_adapter(lambda _: httpx.Response(200, json=body))

    with pytest.raises(ResponseParseError):
        await adapter.fetch_coin_detail("bitcoin")


@pytest.mark.asyncio
async def test_unknown_coin_surfaces_as_network_error() -> None:
    adapter = make_adapter(
        lambda _: httpx.Response(404, json={"error": "coin not found"})
    )

    with pytest.raises(NetworkError) as exc_info:
        await adapter.fetch_coin_detail("no-such-coin")

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_empty_coin_id_is_rejected() -> None:
    adapter = make_adapter(lambda _: httpx.Response(200, json={}))

    with pytest.raises(ValueError, match="non-empty"):
        await adapter.fetch_coin_detail("")


@pytest.mark.asyncio
async def test_history_request_and_decoding() -> None:
    requests: list[httpx.Request] = []
    body = {
        "prices": [[1704067200000, 42000.5], [1704153600000, 43000]],
        "market_caps": [],
        "total_volumes": [],
    }
    adapter = make_adapter(lambda _: httpx.Response(200, json=body), requests)

    points = await adapter.fetch_coin_history("bitcoin", 7, HistoryInterval.DAILY)

    request = requests[0]
    assert request.url.path == "/api/v3/coins/bitcoin/market_chart"
    assert dict(request.url.params) == {
        "vs_currency": "usd",
        "days": "7",
        "interval": "daily",
    }
    assert points == [
        PricePoint(1704067200000, Decimal("42000.5")),
        PricePoint(1704153600000, Decimal(43000)),
    ]


@pytest.mark.asyncio
async def test_history_keeps_malformed_points_for_the_transformer() -> None:
    """Bad individual points do not fail the request."""
    content = (
        b'{"prices": [[1704067200000, NaN], [1704153600000], "junk",'
        b' [1704240000000, null], [1704326400000, 1.5]]}'
    )
    adapter = make_adapter(lambda _: httpx.Response(200, content=content))

    points = await adapter.fetch_coin_history("bitcoin", 7, HistoryInterval.DAILY)

    assert points == [
        PricePoint(1704067200000, None),
        PricePoint(None, None),
        PricePoint(None, None),
        PricePoint(1704240000000, None),
        PricePoint(1704326400000, Decimal("1.5")),
    ]


@pytest.mark.asyncio
async def test_history_without_prices_array_raises_parse_error() -> None:
    adapter = make_adapter(lambda _: httpx.Response(200, json={"market_caps": []}))

    with pytest.raises(ResponseParseError):
        await adapter.fetch_coin_history("bitcoin", 7, HistoryInterval.DAILY)
