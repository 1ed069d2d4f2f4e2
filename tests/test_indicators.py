import pytest

from rsisweep.backtest.indicators import MarketContext, RsiIndicatorCache, compute_rsi
from rsisweep.data.contracts import SymbolSpec


@pytest.mark.parametrize("values", [[], [101.0]])
def test_compute_rsi_returns_null_series_without_two_closes(values):
    results = compute_rsi(values, [2, 14])

    assert set(results) == {2, 14}
    for series in results.values():
        assert len(series) == len(values)
        assert all(value is None for value in series)


def test_compute_rsi_has_period_leading_nulls():
    closes = [100.0 + (idx % 4) * 1.5 - (idx % 3) for idx in range(30)]

    series = compute_rsi(closes, [5])[5]

    assert len(series) == len(closes)
    assert all(value is None for value in series[:5])
    assert all(value is not None for value in series[5:])


def test_compute_rsi_is_all_null_when_history_is_too_short():
    series = compute_rsi([1.0, 2.0, 3.0, 4.0, 5.0], [5])[5]

    assert series == (None,) * 5


def test_compute_rsi_matches_hand_computed_wilder_values():
    series = compute_rsi([1.0, 2.0, 1.0, 2.0, 1.0], [2])[2]

    assert series[:2] == (None, None)
    assert series[2] == pytest.approx(50.0)
    assert series[3] == pytest.approx(75.0)
    assert series[4] == pytest.approx(37.5)


def test_compute_rsi_is_100_when_there_are_no_losses():
    rising = [100.0 + idx for idx in range(10)]
    flat = [50.0] * 10

    assert all(value == 100.0 for value in compute_rsi(rising, [3])[3][3:])
    assert all(value == 100.0 for value in compute_rsi(flat, [3])[3][3:])


def test_compute_rsi_values_stay_within_bounds():
    closes = [100.0, 90.0, 120.0, 60.0, 61.0, 59.0, 130.0, 20.0, 25.0, 24.0, 80.0, 10.0]

    for series in compute_rsi(closes, [1, 2, 3, 5]).values():
        for value in series:
            if value is not None:
                assert 0.0 <= value <= 100.0


def test_compute_rsi_rejects_non_positive_period():
    with pytest.raises(ValueError):
        compute_rsi([1.0, 2.0, 3.0], [0])


def test_indicator_cache_computes_each_period_once():
    cache = RsiIndicatorCache([1.0, 2.0, 1.5, 3.0, 2.5, 4.0])
    cache.populate([2, 3, 2])

    first = cache.series(2)
    cache.populate([2, 4])

    assert cache.series(2) is first
    assert cache.periods() == [2, 3, 4]


def test_market_context_orders_candles_and_exposes_prepared_periods(candle_factory):
    candles = candle_factory([10.0, 11.0, 12.0, 11.5, 13.0])
    shuffled = [candles[3], candles[0], candles[4], candles[1], candles[2], candles[0]]

    context = MarketContext.build(shuffled, [2], SymbolSpec("BTCUSDT", "0.001"))

    assert [candle.open_time for candle in context.candles] == [c.open_time for c in candles]
    assert context.closes == (10.0, 11.0, 12.0, 11.5, 13.0)
    assert len(context.rsi(2)) == len(context)
    with pytest.raises(KeyError):
        context.rsi(3)
    with pytest.raises(TypeError):
        context.indicators[3] = ()  # type: ignore[index]
