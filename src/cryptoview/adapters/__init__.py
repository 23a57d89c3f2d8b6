# src/cryptoview/adapters/__init__.py
"""This package contains the market data sources.

Each adapter is responsible for issuing requests against one upstream API and
decoding the responses into the canonical models of `cryptoview.models`.
Failures of any kind are surfaced as `cryptoview.errors.NetworkError`.

All adapters inherit from the `MarketDataSource` abstract base class defined
in `cryptoview.adapters.base`.
"""
