"""RSI indicator cache and the read-only market context shared by every simulation."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..data.contracts import SymbolSpec
from ..data.schemas import Candle, normalize_candles

IndicatorSeries = Tuple[Optional[float], ...]


def _validate_periods(periods: Iterable[int]) -> List[int]:
    unique = sorted({int(period) for period in periods})
    for period in unique:
        if period <= 0:
            raise ValueError(f"RSI period must be positive: {period}")
    return unique


def compute_rsi(values: Sequence[float], periods: Iterable[int]) -> Dict[int, IndicatorSeries]:
    """Compute Wilder RSI series for each period over ``values``.

    Index ``period`` is the first defined value, computed from the plain mean of
    the first ``period`` changes. Each later index applies one smoothing step
    ``avg = (avg * (period - 1) + change) / period``. A zero average loss gives
    ``100``.
    """

    length = len(values)
    results: Dict[int, IndicatorSeries] = {}
    wanted = _validate_periods(periods)
    if length < 2:
        for period in wanted:
            results[period] = (None,) * length
        return results

    changes = [values[idx + 1] - values[idx] for idx in range(length - 1)]

    for period in wanted:
        series: List[float | None] = [None] * length
        if length < period + 1:
            results[period] = tuple(series)
            continue

        gain = 0.0
        loss = 0.0
        for change in changes[:period]:
            if change > 0:
                gain += change
            else:
                loss -= change
        gain /= period
        loss /= period
        series[period] = _rsi_value(gain, loss)

        for idx in range(period + 1, length):
            change = changes[idx - 1]
            gain = (gain * (period - 1) + (change if change > 0 else 0.0)) / period
            loss = (loss * (period - 1) + (-change if change < 0 else 0.0)) / period
            series[idx] = _rsi_value(gain, loss)

        results[period] = tuple(series)
    return results


def _rsi_value(gain: float, loss: float) -> float:
    if loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + gain / loss)


class RsiIndicatorCache:
    """Memoize RSI series per lookback period over one closing-price sequence."""

    def __init__(self, closes: Sequence[float]) -> None:
        self.closes = tuple(float(value) for value in closes)
        self._series: Dict[int, IndicatorSeries] = {}

    def populate(self, periods: Iterable[int]) -> None:
        """Compute every requested period not cached yet in a single pass."""

        missing = [period for period in _validate_periods(periods) if period not in self._series]
        if missing:
            self._series.update(compute_rsi(self.closes, missing))

    def series(self, period: int) -> IndicatorSeries:
        if period not in self._series:
            self.populate([period])
        return self._series[period]

    def periods(self) -> List[int]:
        return sorted(self._series)

    def snapshot(self) -> Mapping[int, IndicatorSeries]:
        return MappingProxyType(dict(self._series))


@dataclass(slots=True, frozen=True)
class MarketContext:
    """Candles, closing prices and RSI series prepared once before a sweep."""

    candles: tuple[Candle, ...]
    closes: tuple[float, ...]
    indicators: Mapping[int, IndicatorSeries]
    symbol: SymbolSpec

    @classmethod
    def build(
        cls,
        candles: Iterable[Candle],
        periods: Iterable[int],
        symbol: SymbolSpec,
    ) -> "MarketContext":
        ordered = normalize_candles(candles)
        cache = RsiIndicatorCache(candle.close for candle in ordered)
        cache.populate(periods)
        return cls(
            candles=ordered,
            closes=cache.closes,
            indicators=cache.snapshot(),
            symbol=symbol,
        )

    def __len__(self) -> int:
        return len(self.candles)

    def rsi(self, period: int) -> IndicatorSeries:
        try:
            return self.indicators[period]
        except KeyError:
            raise KeyError(f"RSI period {period} was not prepared for this context") from None
