"""Display strings for coin data, shared by the list and detail screens."""

from decimal import Decimal

NOT_AVAILABLE = "n/a"


def display_symbol(symbol: str) -> str:
    """Symbols are case-normalized for display only."""
    return symbol.upper()


def format_price(price: Decimal | None, places: int = 5) -> str:
    """Formats a price with a fixed number of decimals, e.g. "$1.23450"."""
    if price is None:
        return NOT_AVAILABLE
    return f"${price:,.{places}f}"


def format_market_cap(market_cap: Decimal | None) -> str:
    """Formats a market capitalization with thousands separators."""
    if market_cap is None:
        return NOT_AVAILABLE
    return f"${market_cap:,.0f}"


def format_change(change_pct: Decimal | None) -> str:
    if change_pct is None:
        return NOT_AVAILABLE
    return f"{change_pct:.2f}%"


def coin_title(name: str, symbol: str) -> str:
    return f"{name} ({display_symbol(symbol)})"
