from __future__ import annotations

import math
from types import MappingProxyType
from typing import Sequence

import pytest

from rsisweep.backtest.indicators import MarketContext
from rsisweep.config import HOUR_MS
from rsisweep.data.contracts import SymbolSpec
from rsisweep.data.schemas import Candle


def build_candles(
    opens: Sequence[float],
    *,
    closes: Sequence[float] | None = None,
    highs: Sequence[float] | None = None,
    lows: Sequence[float] | None = None,
    start: int = 1_700_000_000_000,
) -> list[Candle]:
    closes = closes if closes is not None else opens
    candles: list[Candle] = []
    for idx, open_price in enumerate(opens):
        close_price = closes[idx]
        high = highs[idx] if highs is not None else max(open_price, close_price)
        low = lows[idx] if lows is not None else min(open_price, close_price)
        open_time = start + idx * HOUR_MS
        candles.append(
            Candle(
                open_time=open_time,
                close_time=open_time + HOUR_MS - 1,
                open=open_price,
                high=high,
                low=low,
                close=close_price,
                volume=10.0,
            )
        )
    return candles


@pytest.fixture
def candle_factory():
    return build_candles


def wave_candles(count: int = 240, *, start: int = 1_700_000_000_000) -> list[Candle]:
    """Oscillating hourly market with a slow upward drift."""

    opens = [100.0 + idx * 0.05 + 8.0 * math.sin(idx / 6.0) for idx in range(count)]
    closes = opens[1:] + [opens[-1]]
    highs = [max(o, c) + 0.5 for o, c in zip(opens, closes)]
    lows = [min(o, c) - 0.5 for o, c in zip(opens, closes)]
    return build_candles(opens, closes=closes, highs=highs, lows=lows, start=start)


@pytest.fixture
def wave_market():
    return wave_candles()


# Hand-made RSI series: period 2 opens on bar 5, period 3 closes on bar 10.
CYCLE_ENTRY_RSI = (None, None, 40.0, 40.0, 70.0, 40.0, 40.0, 40.0, 40.0, 40.0, 40.0, 40.0)
CYCLE_EXIT_RSI = (None, None, None, 50.0, 50.0, 50.0, 50.0, 50.0, 50.0, 20.0, 50.0, 50.0)


def cycle_context(lows: dict[int, float] | None = None) -> MarketContext:
    opens = [100.0 + idx for idx in range(12)]
    low_values = [price - 1.0 for price in opens]
    for idx, value in (lows or {}).items():
        low_values[idx] = value
    candles = build_candles(
        opens,
        closes=[price + 0.5 for price in opens],
        highs=[price + 2.0 for price in opens],
        lows=low_values,
    )
    return MarketContext(
        candles=tuple(candles),
        closes=tuple(candle.close for candle in candles),
        indicators=MappingProxyType({2: CYCLE_ENTRY_RSI, 3: CYCLE_EXIT_RSI}),
        symbol=SymbolSpec("BTCUSDT", "0.001"),
    )


@pytest.fixture
def cycle_context_factory():
    return cycle_context
