"""
Data pipeline: fetch OHLC bars, normalize to Unix seconds UTC, cache bars, fall back to synthetic.

Depends on sim_core.contracts for Bar; no dependency from sim_core back to data.
"""

from data.bar_store import BarStore
from data.fetcher import BarFetcher, FetchResult, MockBarFetcher
from data.market_data import MarketData, MarketDataService, build_service
from data.synthetic import SyntheticBarFetcher

__all__ = [
    "BarFetcher",
    "BarStore",
    "FetchResult",
    "MarketData",
    "MarketDataService",
    "MockBarFetcher",
    "SyntheticBarFetcher",
    "build_service",
]


def get_alpaca_fetcher(api_key: str, api_secret: str, symbol_map: dict[str, str] | None = None):
    """Lazy import to avoid requiring alpaca-py when not used."""
    from data.alpaca_fetcher import AlpacaBarFetcher

    return AlpacaBarFetcher(api_key, api_secret, symbol_map)
