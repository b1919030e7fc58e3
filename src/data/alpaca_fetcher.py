"""
Alpaca bar fetcher: implements BarFetcher protocol using alpaca-py SDK.

Commodities, FX pairs and indices are not equities, so each asset is
mapped to a liquid ETF proxy (silver -> SLV, spx500 -> SPY, ...).
The map can be extended or overridden via ``data.symbol_map`` in
config.yaml. Free tier uses IEX data.
"""

import logging
from datetime import datetime, timedelta, timezone

from sim_core.contracts import Bar

from data.fetcher import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL_MAP: dict[str, str] = {
    "silver": "SLV",
    "gold": "GLD",
    "copper": "CPER",
    "oil": "USO",
    "natgas": "UNG",
    "spx500": "SPY",
    "dax": "EWG",
    "ftse": "EWU",
    "eurusd": "FXE",
    "gbpusd": "FXB",
    "usdjpy": "FXY",
}

_TIMEFRAME_MAP = {
    "1m": ("Minute", 1),
    "5m": ("Minute", 5),
    "15m": ("Minute", 15),
    "30m": ("Minute", 30),
    "1h": ("Hour", 1),
    "4h": ("Hour", 4),
    "1d": ("Day", 1),
}

# Calendar lookback per requested bar; generous to cover nights and weekends.
_LOOKBACK_PER_BAR = {
    "1m": timedelta(minutes=5),
    "5m": timedelta(minutes=20),
    "15m": timedelta(hours=1),
    "30m": timedelta(hours=2),
    "1h": timedelta(hours=4),
    "4h": timedelta(hours=16),
    "1d": timedelta(days=2),
}


def _parse_timeframe(tf_str: str):
    """Convert string timeframe to Alpaca TimeFrame object."""
    from alpaca.data.timeframe import TimeFrame, TimeFrameUnit

    if tf_str not in _TIMEFRAME_MAP:
        raise ValueError(
            f"Unsupported timeframe '{tf_str}'. Supported: {list(_TIMEFRAME_MAP.keys())}"
        )
    unit_str, amount = _TIMEFRAME_MAP[tf_str]
    unit = getattr(TimeFrameUnit, unit_str)
    return TimeFrame(amount, unit)


class AlpacaBarFetcher:
    """
    Fetch OHLC bars for an asset's proxy ticker from Alpaca Market Data API.

    Uses StockHistoricalDataClient from alpaca-py.
    API keys via constructor (typically from AppConfig, sourced from env vars).
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        symbol_map: dict[str, str] | None = None,
    ) -> None:
        if not api_key or not api_secret:
            raise ValueError(
                "Alpaca API key and secret are required. "
                "Set APCA_API_KEY_ID and APCA_API_SECRET_KEY environment variables."
            )
        try:
            from alpaca.data.historical import StockHistoricalDataClient
        except ImportError:
            raise ImportError(
                "alpaca-py is required for AlpacaBarFetcher. "
                "Install with: pip install 'botsim-engine[data]'"
            )
        self._client = StockHistoricalDataClient(api_key, api_secret)
        self._symbols = {**DEFAULT_SYMBOL_MAP, **(symbol_map or {})}

    def ticker_for(self, asset: str) -> str:
        key = asset.lower()
        if key not in self._symbols:
            raise ValueError(f"No Alpaca ticker mapped for asset '{asset}'")
        return self._symbols[key]

    def fetch(
        self,
        asset: str,
        timeframe: str,
        *,
        limit: int = 100,
        end: datetime | None = None,
        feed: str = "iex",
    ) -> FetchResult:
        """Fetch the last *limit* bars; normalize timestamps to Unix seconds UTC."""
        from alpaca.data.enums import DataFeed
        from alpaca.data.requests import StockBarsRequest

        ticker = self.ticker_for(asset)
        tf = _parse_timeframe(timeframe)
        end_dt = end or datetime.now(timezone.utc)
        start_dt = end_dt - _LOOKBACK_PER_BAR[timeframe] * limit
        request_params = StockBarsRequest(
            symbol_or_symbols=ticker,
            timeframe=tf,
            start=start_dt,
            end=end_dt,
            feed=DataFeed(feed.lower()),
        )
        response = self._client.get_stock_bars(request_params)
        raw_bars = response.data.get(ticker, []) if hasattr(response, "data") else response.get(ticker, [])
        bars: list[Bar] = []
        for alpaca_bar in raw_bars:
            ts = alpaca_bar.timestamp
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            bars.append(
                Bar(
                    time=int(ts.timestamp()),
                    open=float(alpaca_bar.open),
                    high=float(alpaca_bar.high),
                    low=float(alpaca_bar.low),
                    close=float(alpaca_bar.close),
                )
            )
        bars = bars[-limit:]
        logger.info("Fetched %d bars for %s (%s) %s", len(bars), asset, ticker, timeframe)
        return FetchResult(bars=bars, asset=asset, timeframe=timeframe, source="alpaca")
