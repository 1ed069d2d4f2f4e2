"""Abstract base classes for candle providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from ..schemas import Candle


@dataclass(slots=True)
class CandleRequest:
    """Parameters for requesting historical candles."""

    symbol: str
    interval: str
    start_time: int
    end_time: int | None = None
    limit: int = 1500
    extend_to_now: bool = True


class BaseCandleProvider(Protocol):
    """Interface for historical candle and symbol metadata providers."""

    def fetch_candles(self, request: CandleRequest) -> Sequence[Candle]:
        """Return candles ordered by open time."""

        raise NotImplementedError

    def fetch_quantity_step(self, symbol: str) -> str:
        """Return the symbol's order quantity step, e.g. ``"0.001"``."""

        raise NotImplementedError
