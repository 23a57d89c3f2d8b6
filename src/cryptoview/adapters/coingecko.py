import json
from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from cryptoview.adapters.base import MarketDataSource
from cryptoview.config import APISettings
from cryptoview.errors import NetworkError, ResponseParseError
from cryptoview.models import CoinDetail, CoinSummary, HistoryInterval, PricePoint


def _to_decimal(value: Any) -> Decimal | None:
    """Converts a decoded JSON number to a finite Decimal, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        return None
    return result if result.is_finite() else None


def _to_timestamp_ms(value: Any) -> int | None:
    """Converts a decoded JSON number to integer epoch milliseconds, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = _to_decimal(value)
    return int(number) if number is not None else None


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        err_msg = f"Field '{key}' is missing or not a non-empty string."
        raise ResponseParseError(err_msg)
    return value


class CoinGeckoAdapter(MarketDataSource):
    """Market data source backed by the public CoinGecko REST API.

    No authentication is used. Each call issues exactly one GET request; no
    retries are attempted. JSON floats are decoded directly into `Decimal`
    so prices never pass through binary floating point.
    """

    def __init__(
        self, http_client: httpx.AsyncClient, api: APISettings | None = None
    ) -> None:
        """Initializes the adapter.

        Args:
            http_client: A shared httpx.AsyncClient for making REST API calls.
            api: The API settings (base URL and fixed query parameters).
        """
        self.http_client = http_client
        self.api = api or APISettings()

    @property
    def source_name(self) -> str:
        """Returns the unique, lowercase identifier for the source."""
        return "coingecko"

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Issues a GET request and decodes the JSON body.

        Raises:
            NetworkError: On transport errors, timeouts and non-2xx responses.
            ResponseParseError: If the body is not valid JSON.
        """
        url = f"{self.api.base_url.rstrip('/')}{path}"
        try:
            response = await self.http_client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"[{self.source_name}] GET {path} returned HTTP {status}.")
            err_msg = f"Request to {path} failed with HTTP {status}."
            raise NetworkError(err_msg, status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning(
                f"[{self.source_name}] GET {path} failed: {type(e).__name__}: {e}"
            )
            err_msg = f"Request to {path} failed: {type(e).__name__}."
            raise NetworkError(err_msg) from e

        try:
            return json.loads(response.content, parse_float=Decimal)
        except ValueError as e:
            err_msg = f"Response from {path} is not valid JSON."
            raise ResponseParseError(err_msg, status_code=response.status_code) from e

    def _coin_path(self, coin_id: str) -> str:
        if not coin_id:
            err_msg = "coin_id must be a non-empty identifier."
            raise ValueError(err_msg)
        return f"/coins/{quote(coin_id, safe='')}"

    async def fetch_ranked_coins(self) -> list[CoinSummary]:
        """Fetches the ranked markets listing from CoinGecko."""
        params = {
            "vs_currency": self.api.vs_currency,
            "category": self.api.category,
            "order": self.api.order,
            "per_page": self.api.per_page,
            "price_change_percentage": self.api.price_change_percentage,
            "precision": self.api.precision,
        }
        data = await self._get_json("/coins/markets", params=params)
        coins = self._parse_markets(data)
        logger.info(f"[{self.source_name}] Fetched {len(coins)} ranked coins.")
        return coins

    async def fetch_coin_detail(self, coin_id: str) -> CoinDetail:
        """Fetches the detail form of a coin from CoinGecko."""
        data = await self._get_json(self._coin_path(coin_id))
        detail = self._parse_detail(data, coin_id)
        logger.debug(f"[{self.source_name}] Fetched detail for '{coin_id}'.")
        return detail

    async def fetch_coin_history(
        self,
        coin_id: str,
        days: int,
        interval: HistoryInterval = HistoryInterval.DAILY,
    ) -> list[PricePoint]:
        """Fetches the price history of a coin from CoinGecko."""
        params = {
            "vs_currency": self.api.vs_currency,
            "days": days,
            "interval": HistoryInterval(interval).value,
        }
        data = await self._get_json(
            f"{self._coin_path(coin_id)}/market_chart", params=params
        )
        points = self._parse_market_chart(data)
        logger.debug(
            f"[{self.source_name}] Fetched {len(points)} price points for '{coin_id}'."
        )
        return points

    # --- Response decoding ---

    def _parse_markets(self, data: Any) -> list[CoinSummary]:
        """Decodes the markets listing. Any malformed entry fails the whole list."""
        if not isinstance(data, list):
            err_msg = f"Expected a JSON array of coins, got {type(data).__name__}."
            raise ResponseParseError(err_msg)

        coins: list[CoinSummary] = []
        seen_ids: set[str] = set()
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                err_msg = f"Coin entry {index} is not a JSON object."
                raise ResponseParseError(err_msg)
            image = entry.get("image")
            coin = CoinSummary(
                id=_require_str(entry, "id"),
                name=_require_str(entry, "name"),
                symbol=_require_str(entry, "symbol"),
                current_price=_to_decimal(entry.get("current_price")),
                market_cap=_to_decimal(entry.get("market_cap")),
                price_change_percentage_24h=_to_decimal(
                    entry.get("price_change_percentage_24h")
                ),
                image=image if isinstance(image, str) else None,
            )
            if coin.id in seen_ids:
                err_msg = f"Duplicate coin id '{coin.id}' in markets listing."
                raise ResponseParseError(err_msg)
            seen_ids.add(coin.id)
            coins.append(coin)
        return coins

    def _parse_detail(self, data: Any, coin_id: str) -> CoinDetail:
        if not isinstance(data, dict):
            err_msg = f"Expected a JSON object for '{coin_id}'."
            raise ResponseParseError(err_msg)

        market_data = data.get("market_data")
        prices = (
            market_data.get("current_price") if isinstance(market_data, dict) else None
        )
        if not isinstance(prices, dict):
            err_msg = f"Detail for '{coin_id}' has no market_data.current_price."
            raise ResponseParseError(err_msg)

        current_price: dict[str, Decimal] = {}
        for currency, raw_price in prices.items():
            price = _to_decimal(raw_price)
            if price is not None:
                current_price[str(currency).lower()] = price
        if self.api.vs_currency.lower() not in current_price:
            err_msg = (
                f"Detail for '{coin_id}' has no valid "
                f"'{self.api.vs_currency}' price."
            )
            raise ResponseParseError(err_msg)

        return CoinDetail(
            id=data["id"] if isinstance(data.get("id"), str) else coin_id,
            name=_require_str(data, "name"),
            symbol=_require_str(data, "symbol"),
            current_price=current_price,
        )

    def _parse_market_chart(self, data: Any) -> list[PricePoint]:
        """Decodes the `prices` array.

        The envelope must be well formed, but individual points are decoded
        leniently: an undecodable point becomes a PricePoint with None fields
        so that one bad sample does not discard the whole history.
        """
        prices = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(prices, list):
            err_msg = "Market chart response has no 'prices' array."
            raise ResponseParseError(err_msg)

        points: list[PricePoint] = []
        for raw_point in prices:
            if isinstance(raw_point, list) and len(raw_point) >= 2:
                points.append(
                    PricePoint(
                        timestamp_ms=_to_timestamp_ms(raw_point[0]),
                        price=_to_decimal(raw_point[1]),
                    )
                )
            else:
                logger.debug(f"[{self.source_name}] Malformed price point: {raw_point}")
                points.append(PricePoint(timestamp_ms=None, price=None))
        return points

