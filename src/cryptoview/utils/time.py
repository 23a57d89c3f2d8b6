from datetime import datetime, timezone

# Month abbreviations used for chart labels. Fixed rather than taken from
# `strftime("%b")` so labels do not depend on the process locale.
MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def ms_to_utc_datetime(timestamp_ms: int) -> datetime:
    """Converts Unix epoch milliseconds to a timezone-aware UTC datetime.

    Raises:
        ValueError: If the timestamp is outside the platform's supported range.
    """
    try:
        return datetime.fromtimestamp(timestamp_ms / 1_000, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        err_msg = f"Timestamp '{timestamp_ms}' ms is out of range."
        raise ValueError(err_msg) from e


def format_short_date(timestamp_ms: int) -> str:
    """Formats epoch milliseconds as a short UTC month/day label.

    Example: 1704067200000 -> "Jan 1"

    Raises:
        ValueError: If the timestamp is outside the supported range.
    """
    dt_obj = ms_to_utc_datetime(timestamp_ms)
    return f"{MONTH_ABBREVIATIONS[dt_obj.month - 1]} {dt_obj.day}"
