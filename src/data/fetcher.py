"""
Fetch OHLC bars for an asset/timeframe from a data source. Configurable adapter; sync.
"""

from dataclasses import dataclass
from typing import Protocol

from sim_core.contracts import Bar


@dataclass
class FetchResult:
    """Result of a fetch: bars (oldest first) and where they came from."""

    bars: list[Bar]
    asset: str
    timeframe: str
    source: str = ""


class BarFetcher(Protocol):
    """Protocol for bar fetchers. Implement per provider (Alpaca, synthetic, etc.)."""

    def fetch(
        self,
        asset: str,
        timeframe: str,
        *,
        limit: int = 100,
    ) -> FetchResult:
        """Fetch the most recent *limit* bars; times are Unix seconds (UTC)."""
        ...


class MockBarFetcher:
    """Returns no bars; for tests and when no API is configured."""

    def fetch(
        self,
        asset: str,
        timeframe: str,
        *,
        limit: int = 100,
    ) -> FetchResult:
        return FetchResult(bars=[], asset=asset, timeframe=timeframe, source="mock")
