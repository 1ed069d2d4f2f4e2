from pathlib import Path

import pytest

from rsisweep.config import AppSettings, DataPaths, SweepConfig
from rsisweep.data import MarketData, ParquetCandleStore, load_market_data


class StubCandleProvider:
    def __init__(self, candles, step="0.001"):
        self.candles = candles
        self.step = step
        self.requests = []
        self.closed = False

    def fetch_candles(self, request):
        self.requests.append(request)
        return tuple(self.candles)

    def fetch_quantity_step(self, symbol):
        return self.step

    def close(self) -> None:
        self.closed = True


class FailingCandleProvider(StubCandleProvider):
    def fetch_candles(self, request):  # pragma: no cover - must not be reached
        raise AssertionError("cached candles should be used")


class DummySettings(AppSettings):
    def __init__(self, tmp_path: Path):
        super().__init__(data_paths=DataPaths(cache=tmp_path / "cache", reports=tmp_path / "reports"))


def test_load_market_data_uses_config_for_request(tmp_path, candle_factory):
    candles = candle_factory([100.0, 101.0, 102.0])
    provider = StubCandleProvider(candles)
    config = SweepConfig(symbol="ethusdt", interval="4h", page_limit=500,
                         start_time=1_600_000_000_000, extend_to_now=False)

    market = load_market_data(config, settings=DummySettings(tmp_path), provider=provider)

    assert isinstance(market, MarketData)
    assert market.symbol.symbol == "ETHUSDT"
    assert market.symbol.quantity_step == "0.001"
    assert market.candles == tuple(candles)
    request = provider.requests[0]
    assert request.symbol == "ETHUSDT"
    assert request.interval == "4h"
    assert request.limit == 500
    assert request.start_time == 1_600_000_000_000
    assert request.extend_to_now is False
    assert provider.closed is False  # Provided provider should not be closed by ingest


def test_load_market_data_reuses_parquet_cache(tmp_path, candle_factory):
    candles = candle_factory([100.0, 101.5, 99.0, 102.25])
    store = ParquetCandleStore(tmp_path / "cache")
    config = SweepConfig(start_time=candles[0].open_time, extend_to_now=False)
    settings = DummySettings(tmp_path)

    first = load_market_data(config, settings=settings, provider=StubCandleProvider(candles), store=store)
    assert store.exists("BTCUSDT", "1h", config.start_time)

    second = load_market_data(
        config, settings=settings, provider=FailingCandleProvider([], step="0.01"), store=store)

    assert second.candles == first.candles
    assert second.symbol.quantity_step == "0.01"


def test_parquet_store_roundtrip_sorts_and_deduplicates(tmp_path, candle_factory):
    candles = candle_factory([10.0, 11.0, 12.0])
    store = ParquetCandleStore(tmp_path)

    path = store.save("btcusdt", "1h", 123, [candles[2], candles[0], candles[1], candles[0]])

    assert path.name == "BTCUSDT_1h_123.parquet"
    assert store.load("BTCUSDT", "1h", 123) == tuple(candles)


def test_parquet_store_missing_file(tmp_path):
    store = ParquetCandleStore(tmp_path)

    with pytest.raises(FileNotFoundError):
        store.load_frame("BTCUSDT", "1h", 0)


def test_load_market_data_tops_up_cache_with_newer_candles(tmp_path, candle_factory):
    history = candle_factory([100.0, 101.0, 102.0, 103.0, 104.0])
    store = ParquetCandleStore(tmp_path / "cache")
    config = SweepConfig(start_time=history[0].open_time, extend_to_now=True)
    settings = DummySettings(tmp_path)
    store.save(config.symbol, config.interval, config.start_time, history[:3])

    provider = StubCandleProvider(history[3:])
    market = load_market_data(config, settings=settings, provider=provider, store=store)

    assert provider.requests[0].start_time == history[2].close_time + 1
    assert market.candles == tuple(history)
    assert store.load(config.symbol, config.interval, config.start_time) == tuple(history)


def test_default_configs_share_one_cache_file(tmp_path):
    store = ParquetCandleStore(tmp_path)

    first = SweepConfig()
    second = SweepConfig()

    assert first.start_time == second.start_time
    assert store.path_for(first.symbol, first.interval, first.start_time) == store.path_for(
        second.symbol, second.interval, second.start_time)
