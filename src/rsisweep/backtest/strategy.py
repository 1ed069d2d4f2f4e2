"""RSI entry/exit rule evaluated by the backtest engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Signal(str, Enum):
    NONE = "NONE"
    OPEN_LONG = "OPEN_LONG"
    CLOSE_LONG = "CLOSE_LONG"


@dataclass(slots=True, frozen=True)
class StrategyParameters:
    """One point of the sweep: RSI lookbacks, thresholds and leverage."""

    entry_period: int
    exit_period: int
    entry_level: int
    exit_level: int
    leverage: int = 1

    def __post_init__(self) -> None:
        if self.entry_period <= 0 or self.exit_period <= 0:
            raise ValueError("RSI periods must be positive")
        if self.leverage <= 0:
            raise ValueError("leverage must be positive")

    @property
    def warmup(self) -> int:
        """First candle index the engine evaluates."""

        return max(self.entry_period, self.exit_period) + 1

    def label(self) -> str:
        return (
            f"entry_period={self.entry_period}|exit_period={self.exit_period}|"
            f"entry_level={self.entry_level}|exit_level={self.exit_level}|"
            f"leverage={self.leverage}x"
        )

    def signal(self, in_position: bool, prev_entry_rsi: float, prev_exit_rsi: float) -> Signal:
        """Decide using the previous bar's RSI values only."""

        if not in_position and prev_entry_rsi > self.entry_level:
            return Signal.OPEN_LONG
        if in_position and prev_exit_rsi < self.exit_level:
            return Signal.CLOSE_LONG
        return Signal.NONE
