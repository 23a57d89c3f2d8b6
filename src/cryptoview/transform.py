from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from loguru import logger

from cryptoview.models import ChartSeries, PricePoint
from cryptoview.utils.time import format_short_date

DEFAULT_CHART_WINDOW = 7


def _finite_price(value: object) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return price if price.is_finite() else None


def to_chart_series(
    points: Sequence[PricePoint], window: int = DEFAULT_CHART_WINDOW
) -> ChartSeries:
    """Converts a raw price history into a chart-ready series.

    Points with a missing or out-of-range timestamp, or a missing or
    non-finite price, are dropped. The trailing `window` of the remaining
    points is kept in its original order and each is labelled with its UTC
    month and day (e.g. "Jan 5"). The input is assumed to be chronological
    and is not re-sorted.

    Args:
        points: The raw price history.
        window: The maximum number of trailing points to keep.

    Returns:
        A ChartSeries; empty when there is nothing to draw.
    """
    if window <= 0:
        return ChartSeries()

    usable: list[tuple[str, Decimal]] = []
    dropped = 0
    for point in points:
        price = _finite_price(point.price)
        if price is None or point.timestamp_ms is None:
            dropped += 1
            continue
        try:
            label = format_short_date(point.timestamp_ms)
        except (TypeError, ValueError):
            dropped += 1
            continue
        usable.append((label, price))

    if dropped:
        logger.debug(f"Dropped {dropped} unusable price point(s) from the series.")

    recent = usable[-window:]
    return ChartSeries(
        labels=[label for label, _ in recent],
        values=[price for _, price in recent],
    )
