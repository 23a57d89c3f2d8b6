import pytest
from fakes import FakeMarketDataSource, daily_points

from cryptoview.models import CoinSummary


@pytest.fixture
def fake_source() -> FakeMarketDataSource:
    """Provides a fake source with two coins and eight days of history."""
    source = FakeMarketDataSource()
    source.coins = [
        CoinSummary(id="bitcoin", name="Bitcoin", symbol="btc"),
        CoinSummary(id="ethereum", name="Ethereum", symbol="eth"),
    ]
    source.history = daily_points(8)
    return source
