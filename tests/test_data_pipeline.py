"""Integration tests for data pipeline: bar store, synthetic fallback, market data service."""

from pathlib import Path

import pytest

from config.loader import AppConfig, DataConfig, JournalConfig, SettingsConfig
from data.bar_store import CACHE_TTL, BarStore
from data.fetcher import FetchResult, MockBarFetcher
from data.market_data import MarketDataService, build_service
from data.synthetic import BASE_PRICES, SyntheticBarFetcher, generate_bars
from sim_core.contracts import Bar

T0 = 1704153600  # 2024-01-02 00:00 UTC


def _bars(n: int, start: float = 100.0) -> list[Bar]:
    return [Bar(T0 + i * 3600, start + i, start + i + 1, start + i - 1, start + i + 0.5) for i in range(n)]


class TestBarStore:
    def test_write_and_get_last(self, tmp_path: Path) -> None:
        store = BarStore(tmp_path / "bars.db")
        store.write_bars("silver", "1h", _bars(5))
        out = store.get_last_bars("silver", "1h", 3)
        assert [b.time for b in out] == [T0 + 2 * 3600, T0 + 3 * 3600, T0 + 4 * 3600]
        assert out[0] == _bars(5)[2]

    def test_upsert_by_time(self, tmp_path: Path) -> None:
        store = BarStore(tmp_path / "bars.db")
        store.write_bars("silver", "1h", _bars(3))
        store.write_bars("silver", "1h", _bars(3, start=200.0))
        assert store.count_bars("silver", "1h") == 3
        assert store.get_last_bars("silver", "1h", 1)[0].open == 202.0

    def test_pairs_are_separate(self, tmp_path: Path) -> None:
        store = BarStore(tmp_path / "bars.db")
        store.write_bars("silver", "1h", _bars(3))
        assert store.count_bars("silver", "4h") == 0
        assert store.count_bars("gold", "1h") == 0
        assert store.get_last_bars("gold", "1h", 10) == []

    def test_freshness_ttl(self, tmp_path: Path) -> None:
        store = BarStore(tmp_path / "bars.db")
        assert not store.is_fresh("silver", "1m")
        store.write_bars("silver", "1m", _bars(2), source="alpaca", fetched_at=1000.0)
        assert store.last_fetch("silver", "1m") == (1000.0, "alpaca")
        assert store.is_fresh("silver", "1m", now=1000.0 + CACHE_TTL["1m"] - 1)
        assert not store.is_fresh("silver", "1m", now=1000.0 + CACHE_TTL["1m"])

    def test_unknown_timeframe_uses_hour_ttl(self, tmp_path: Path) -> None:
        store = BarStore(tmp_path / "bars.db")
        store.write_bars("silver", "2h", _bars(2), fetched_at=0.0)
        assert store.is_fresh("silver", "2h", now=3599.0)
        assert not store.is_fresh("silver", "2h", now=3600.0)


class TestSynthetic:
    def test_same_seed_same_bars(self) -> None:
        a = generate_bars(65.0, 50, 0.02, end_time=T0, seed=1)
        b = generate_bars(65.0, 50, 0.02, end_time=T0, seed=1)
        assert a == b
        assert a != generate_bars(65.0, 50, 0.02, end_time=T0, seed=2)

    def test_shape(self) -> None:
        bars = generate_bars(65.0, 100, 0.02, interval=900, end_time=T0 + 123, seed=3)
        assert len(bars) == 100
        assert bars[-1].time == T0
        assert all(b.time - a.time == 900 for a, b in zip(bars, bars[1:]))
        assert bars[0].open == 65.0
        for prev, bar in zip(bars, bars[1:]):
            assert bar.open == pytest.approx(prev.close, abs=1e-4)
        for bar in bars:
            assert bar.high >= max(bar.open, bar.close)
            assert bar.low <= min(bar.open, bar.close)
            assert round(bar.close, 4) == bar.close

    def test_fetcher_uses_asset_base_price(self) -> None:
        result = SyntheticBarFetcher(seed=1, end_time=T0).fetch("GOLD", "4h", limit=10)
        assert result.source == "synthetic"
        assert len(result.bars) == 10
        assert result.bars[0].open == BASE_PRICES["gold"][0]
        assert result.bars[1].time - result.bars[0].time == 4 * 3600

    def test_unknown_asset_falls_back_to_silver(self) -> None:
        result = SyntheticBarFetcher(seed=1, end_time=T0).fetch("unobtainium", "1h", limit=3)
        assert result.bars[0].open == BASE_PRICES["silver"][0]


class _FixedFetcher:
    def __init__(self, bars: list[Bar]) -> None:
        self.bars = bars
        self.calls = 0

    def fetch(self, asset: str, timeframe: str, *, limit: int = 100) -> FetchResult:
        self.calls += 1
        return FetchResult(bars=self.bars, asset=asset, timeframe=timeframe, source="fixed")


class _FailingFetcher:
    def fetch(self, asset: str, timeframe: str, *, limit: int = 100) -> FetchResult:
        raise ConnectionError("provider down")


class TestMarketDataService:
    def test_fetches_stores_and_caps(self, tmp_path: Path) -> None:
        fetcher = _FixedFetcher(_bars(10))
        store = BarStore(tmp_path / "bars.db")
        svc = MarketDataService(fetcher, store, max_bars=4)

        md = svc.get_bars("Silver", "1h")
        assert md.source == "fixed"
        assert md.asset == "silver"
        assert md.bars == _bars(10)[-4:]
        assert not md.is_fallback
        assert store.count_bars("silver", "1h") == 4

    def test_serves_fresh_cache(self, tmp_path: Path) -> None:
        fetcher = _FixedFetcher(_bars(5))
        svc = MarketDataService(fetcher, BarStore(tmp_path / "bars.db"), max_bars=5)
        svc.get_bars("silver", "1d")
        md = svc.get_bars("silver", "1d")
        assert md.source == "cache"
        assert md.bars == _bars(5)
        assert fetcher.calls == 1

    def test_refresh_bypasses_cache(self, tmp_path: Path) -> None:
        fetcher = _FixedFetcher(_bars(5))
        svc = MarketDataService(fetcher, BarStore(tmp_path / "bars.db"), max_bars=5)
        svc.get_bars("silver", "1d")
        svc.get_bars("silver", "1d", refresh=True)
        assert fetcher.calls == 2

    def test_falls_back_on_failure(self, tmp_path: Path) -> None:
        seen: list[tuple[str, str, str]] = []
        store = BarStore(tmp_path / "bars.db")
        svc = MarketDataService(
            _FailingFetcher(), store, max_bars=20,
            fallback=SyntheticBarFetcher(seed=1, end_time=T0),
            on_fallback=lambda a, t, r: seen.append((a, t, r)),
        )
        md = svc.get_bars("gold", "1h")
        assert md.source == "synthetic"
        assert md.is_fallback
        assert "provider down" in md.fallback_reason
        assert len(md.bars) == 20
        assert seen == [("gold", "1h", md.fallback_reason)]
        # Fallback data is never cached.
        assert store.count_bars("gold", "1h") == 0

    def test_falls_back_on_empty_provider(self, tmp_path: Path) -> None:
        svc = MarketDataService(MockBarFetcher(), BarStore(tmp_path / "bars.db"), max_bars=5)
        md = svc.get_bars("oil", "15m")
        assert md.source == "synthetic"
        assert md.fallback_reason == "provider returned no bars"
        assert len(md.bars) == 5


def _app_config(tmp_path: Path, **data) -> AppConfig:
    return AppConfig(
        asset="silver",
        timeframe="1h",
        data=DataConfig(bar_store_path=str(tmp_path / "bars.db"), max_bars=10, **data),
        settings=SettingsConfig(),
        journal=JournalConfig(path=str(tmp_path / "journal.jsonl")),
    )


class TestBuildService:
    def test_synthetic_source(self, tmp_path: Path) -> None:
        md = build_service(_app_config(tmp_path)).get_bars("silver", "1h")
        assert md.source == "synthetic"
        assert not md.is_fallback
        assert len(md.bars) == 10

    def test_alpaca_without_keys_falls_back(self, tmp_path: Path) -> None:
        seen: list[str] = []
        cfg = _app_config(tmp_path, source="alpaca", api_key="", api_secret="")
        svc = build_service(cfg, on_fallback=lambda a, t, reason: seen.append(reason))
        md = svc.get_bars("silver", "1h")
        assert md.is_fallback
        assert md.source == "synthetic"
        assert len(md.bars) == 10
        assert "API key" in md.fallback_reason
        assert seen == [md.fallback_reason]
