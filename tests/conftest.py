"""Pytest fixtures: bar sequences and settings for deterministic tests."""

from datetime import datetime, timezone

import pytest

from config.sim_settings import Settings
from data.synthetic import generate_bars
from sim_core.contracts import Bar

# 2024-01-02 00:00 UTC
T0 = int(datetime(2024, 1, 2, tzinfo=timezone.utc).timestamp())
HOUR = 3600


def make_bar(i: int, o: float, h: float, l: float, c: float) -> Bar:
    return Bar(time=T0 + i * HOUR, open=o, high=h, low=l, close=c)


@pytest.fixture
def plain_settings() -> Settings:
    """Unknown asset (point 0.01, contract 1000), half size, $7 fee, no spread."""
    return Settings(
        asset="TEST",
        initial_capital=2000.0,
        max_position_size=1.0,
        position_size=0.5,
        use_order_fee=True,
        order_fee=7.0,
        use_spread=False,
        spread_pips=2.0,
        stop_loss=100.0,
        take_profit=300.0,
        trade_type="long",
        use_obv=True,
        use_heikin_ashi=True,
        obv_period=1,
    )


@pytest.fixture
def flat_bars() -> list[Bar]:
    """Ten identical bars: no price movement at all."""
    return [make_bar(i, 10.0, 10.0, 10.0, 10.0) for i in range(10)]


@pytest.fixture
def stop_bars() -> list[Bar]:
    """Flat, flat, bullish breakout (entry at 10.5), then a 1.0 drop."""
    return [
        make_bar(0, 10.0, 10.0, 10.0, 10.0),
        make_bar(1, 10.0, 10.0, 10.0, 10.0),
        make_bar(2, 10.0, 10.5, 10.0, 10.5),
        make_bar(3, 10.5, 10.5, 9.5, 9.5),
    ]


@pytest.fixture
def random_walk_bars() -> list[Bar]:
    """200 seeded random-walk bars around 65.0 (silver-like)."""
    return generate_bars(65.0, 200, 0.02, end_time=T0 + 200 * HOUR, seed=7)
