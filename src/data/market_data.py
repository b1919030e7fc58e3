"""
Market data service: cached bars with live fetch and synthetic fallback.

Lookup order for ``get_bars(asset, timeframe)``:

1. bars in the store, if the pair was fetched within its TTL,
2. the configured fetcher (stored on success),
3. the synthetic generator, when the fetcher fails or returns nothing.

Results are always capped to the newest ``max_bars`` bars.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from sim_core.contracts import Bar

from data.bar_store import BarStore
from data.fetcher import BarFetcher, FetchResult
from data.synthetic import SyntheticBarFetcher

logger = logging.getLogger("botsim.data")


@dataclass
class MarketData:
    bars: list[Bar]
    asset: str
    timeframe: str
    source: str             # "cache" | fetcher source | "synthetic"
    fallback_reason: str = ""

    @property
    def is_fallback(self) -> bool:
        return bool(self.fallback_reason)


class MarketDataService:
    """Serve bars for (asset, timeframe) from cache, provider, or fallback."""

    def __init__(
        self,
        fetcher: BarFetcher,
        store: BarStore,
        *,
        max_bars: int = 100,
        fallback: BarFetcher | None = None,
        on_fallback: Callable[[str, str, str], None] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._max_bars = max_bars
        self._fallback = fallback or SyntheticBarFetcher()
        self._on_fallback = on_fallback

    def get_bars(self, asset: str, timeframe: str, *, refresh: bool = False) -> MarketData:
        asset = asset.lower()
        if not refresh and self._store.is_fresh(asset, timeframe):
            cached = self._store.get_last_bars(asset, timeframe, self._max_bars)
            if cached:
                logger.debug("Cache hit: %d bars for %s %s", len(cached), asset, timeframe)
                return MarketData(bars=cached, asset=asset, timeframe=timeframe, source="cache")

        reason = ""
        try:
            result = self._fetcher.fetch(asset, timeframe, limit=self._max_bars)
        except Exception as e:
            logger.warning("Fetch failed for %s %s: %s", asset, timeframe, e)
            reason = f"fetch failed: {e}"
        else:
            if result.bars:
                bars = result.bars[-self._max_bars:]
                self._store.write_bars(asset, timeframe, bars, source=result.source)
                return MarketData(bars=bars, asset=asset, timeframe=timeframe, source=result.source)
            reason = "provider returned no bars"
            logger.warning("No bars from provider for %s %s", asset, timeframe)

        logger.info("Using synthetic data for %s %s (%s)", asset, timeframe, reason)
        if self._on_fallback:
            self._on_fallback(asset, timeframe, reason)
        bars = self._fallback.fetch(asset, timeframe, limit=self._max_bars).bars[-self._max_bars:]
        return MarketData(
            bars=bars,
            asset=asset,
            timeframe=timeframe,
            source="synthetic",
            fallback_reason=reason,
        )


class _UnavailableFetcher:
    """Stands in for a provider that could not be set up; every fetch fails with *reason*."""

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def fetch(self, asset: str, timeframe: str, *, limit: int = 100) -> FetchResult:
        raise RuntimeError(self.reason)


def build_service(cfg, *, on_fallback: Callable[[str, str, str], None] | None = None) -> MarketDataService:
    """MarketDataService for an AppConfig: Alpaca when configured, else synthetic.

    If the Alpaca client cannot be built (missing keys, alpaca-py not
    installed) every request falls back to synthetic bars with that reason.
    """
    fetcher: BarFetcher
    if cfg.data.source == "alpaca":
        from data import get_alpaca_fetcher

        try:
            fetcher = get_alpaca_fetcher(cfg.data.api_key, cfg.data.api_secret, cfg.data.symbol_map)
        except (ValueError, ImportError) as e:
            logger.warning("Alpaca unavailable, serving synthetic bars: %s", e)
            fetcher = _UnavailableFetcher(f"alpaca unavailable: {e}")
    else:
        fetcher = SyntheticBarFetcher()
    return MarketDataService(
        fetcher,
        BarStore(cfg.data.bar_store_path),
        max_bars=cfg.data.max_bars,
        on_fallback=on_fallback,
    )
