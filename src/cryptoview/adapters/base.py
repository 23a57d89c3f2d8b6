import abc

from cryptoview.models import CoinDetail, CoinSummary, HistoryInterval, PricePoint


class MarketDataSource(abc.ABC):
    """An abstract base class for market data sources.

    A source translates the three logical queries the screens need into
    requests against an upstream API. Implementations hold no state visible
    to callers and must raise `NetworkError` for every kind of failure, never
    returning a partial result.
    """

    @property
    @abc.abstractmethod
    def source_name(self) -> str:
        """A unique, lowercase identifier for the source (e.g., 'coingecko')."""
        raise NotImplementedError

    @abc.abstractmethod
    async def fetch_ranked_coins(self) -> list[CoinSummary]:
        """Fetches the ranked collection of coins, in upstream order.

        Returns:
            The coins ordered by descending market capitalization as delivered.

        Raises:
            NetworkError: If the request or decoding fails.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def fetch_coin_detail(self, coin_id: str) -> CoinDetail:
        """Fetches the detail form of a single coin.

        Args:
            coin_id: A non-empty identifier taken from a ranked collection.

        Raises:
            NetworkError: If the request or decoding fails, including an
                unknown coin id.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def fetch_coin_history(
        self, coin_id: str, days: int, interval: HistoryInterval
    ) -> list[PricePoint]:
        """Fetches the price history of a single coin.

        Args:
            coin_id: A non-empty identifier taken from a ranked collection.
            days: How many days of history to request.
            interval: The sampling interval of the history.

        Returns:
            The raw price points in chronological order, as delivered.

        Raises:
            NetworkError: If the request fails or the envelope is malformed.
        """
        raise NotImplementedError
