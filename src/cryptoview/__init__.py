# src/cryptoview/__init__.py
"""CryptoView: a desktop viewer for ranked cryptocurrency market data.

This package contains the data-access layer, the per-screen state machines
and the chart transformation pipeline, plus a thin PySide6 user interface
that renders whatever state the screen controllers hold.

Key sub-packages and modules:
- `adapters`: Market data sources (CoinGecko REST).
- `controllers`: Screen controllers with Pending/Ready/Failed state.
- `transform`: Conversion of raw price history into chart-ready series.
- `ui`: The PySide6-based graphical user interface.
"""

import importlib.metadata

try:
    __version__: str = importlib.metadata.version("cryptoview")
except importlib.metadata.PackageNotFoundError:
    # Not installed, e.g. running straight from a source checkout.
    __version__ = "0.0.0-dev"
