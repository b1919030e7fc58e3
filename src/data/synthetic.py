"""
Synthetic bar generator: seeded random walk around a per-asset base price.

Used as the fallback provider when live data is unavailable. Each bar
opens at the previous close, moves by up to ``volatility * price`` and
gets wicks of up to half that beyond the body. Prices are rounded to
4 decimals. Same seed, same bars.
"""

import random
import time as _time

from sim_core.contracts import Bar

from data.fetcher import FetchResult

# (base price, per-bar volatility)
BASE_PRICES: dict[str, tuple[float, float]] = {
    "silver": (65.0, 0.02),
    "gold": (2900.0, 0.01),
    "copper": (4.5, 0.025),
    "oil": (59.44, 0.03),
    "natgas": (3.47, 0.04),
    "eurusd": (1.1673, 0.005),
    "gbpusd": (1.344, 0.006),
    "usdjpy": (159.06, 0.004),
    "spx500": (6947.0, 0.012),
    "dax": (24921.0, 0.015),
    "ftse": (10141.0, 0.01),
}

TIMEFRAME_SECONDS: dict[str, int] = {
    "1m": 60,
    "5m": 5 * 60,
    "15m": 15 * 60,
    "30m": 30 * 60,
    "1h": 60 * 60,
    "4h": 4 * 60 * 60,
    "1d": 24 * 60 * 60,
}


def generate_bars(
    base_price: float,
    num_bars: int,
    volatility: float,
    *,
    interval: int = 3600,
    end_time: int | None = None,
    seed: int | None = None,
) -> list[Bar]:
    """Random-walk bars ending at *end_time* (default: now), oldest first."""
    rng = random.Random(seed)
    end = int(_time.time()) if end_time is None else end_time
    end -= end % interval
    price = base_price
    bars: list[Bar] = []
    for i in range(num_bars - 1, -1, -1):
        change = (rng.random() - 0.5) * 2 * volatility * price
        open_ = price
        close = price + change
        high = max(open_, close) + rng.random() * volatility * price * 0.5
        low = min(open_, close) - rng.random() * volatility * price * 0.5
        bars.append(
            Bar(
                time=end - i * interval,
                open=round(open_, 4),
                high=round(high, 4),
                low=round(low, 4),
                close=round(close, 4),
            )
        )
        price = close
    return bars


class SyntheticBarFetcher:
    """BarFetcher producing deterministic synthetic bars for any asset."""

    def __init__(self, *, seed: int | None = 42, end_time: int | None = None) -> None:
        self._seed = seed
        self._end_time = end_time

    def fetch(
        self,
        asset: str,
        timeframe: str,
        *,
        limit: int = 100,
    ) -> FetchResult:
        base, vol = BASE_PRICES.get(asset.lower(), BASE_PRICES["silver"])
        bars = generate_bars(
            base,
            limit,
            vol,
            interval=TIMEFRAME_SECONDS.get(timeframe, 3600),
            end_time=self._end_time,
            seed=self._seed,
        )
        return FetchResult(bars=bars, asset=asset, timeframe=timeframe, source="synthetic")
