from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

DETAILS_ROUTE = "details"


class HistoryInterval(StrEnum):
    """Granularity of the price history requested from the upstream API."""

    DAILY = "daily"


@dataclass(frozen=True)
class CoinSummary:
    """A coin as it appears in the ranked markets listing."""

    id: str
    name: str
    symbol: str
    current_price: Decimal | None = None
    market_cap: Decimal | None = None
    price_change_percentage_24h: Decimal | None = None
    image: str | None = None


@dataclass(frozen=True)
class CoinDetail:
    """The detail form of a coin, fetched independently of the summary."""

    id: str
    name: str
    symbol: str
    current_price: dict[str, Decimal] = field(default_factory=dict)

    def price_in(self, currency: str) -> Decimal | None:
        """Returns the current price in the given currency, if quoted."""
        return self.current_price.get(currency.lower())


@dataclass(frozen=True)
class PricePoint:
    """One (timestamp, price) observation of a coin's price history.

    Fields are None when the upstream point could not be decoded; such points
    are kept in the raw series and dropped by the chart transformation.
    """

    timestamp_ms: int | None
    price: Decimal | None


@dataclass(frozen=True)
class ChartSeries:
    """Chart-ready projection of a price history: aligned labels and values."""

    labels: list[str] = field(default_factory=list)
    values: list[Decimal] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to draw."""
        return not self.values

    def points(self) -> Iterator[tuple[str, Decimal]]:
        return zip(self.labels, self.values, strict=True)


@dataclass(frozen=True)
class DetailPayload:
    """What the detail screen needs once both of its fetches have succeeded."""

    detail: CoinDetail
    history: list[PricePoint]


@dataclass(frozen=True)
class NavigationRequest:
    """A request to move to another screen, carrying the selected coin id."""

    route: str
    coin_id: str


# --- Screen state variant ---


@dataclass(frozen=True)
class Pending:
    """The screen's fetch has been issued and has not resolved yet."""


@dataclass(frozen=True)
class Ready(Generic[T]):
    """The screen's fetch succeeded."""

    payload: T


@dataclass(frozen=True)
class Failed:
    """The screen's fetch did not succeed. Terminal for the activation."""

    message: str
    reason: str = ""


ScreenState = Pending | Ready[Any] | Failed
