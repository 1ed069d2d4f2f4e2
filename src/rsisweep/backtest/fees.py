"""Trading fee and funding cost model for the backtest engine."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import DEFAULT_FUNDING_PERIOD_MS


@dataclass(slots=True, frozen=True)
class FeeModel:
    """Taker fee on notional plus periodic funding on open positions."""

    fee_rate: float = 0.0005
    funding_rate: float = 0.0001
    funding_period_ms: int = DEFAULT_FUNDING_PERIOD_MS

    def __post_init__(self) -> None:
        if self.fee_rate < 0:
            raise ValueError("fee_rate cannot be negative")
        if self.funding_period_ms <= 0:
            raise ValueError("funding_period_ms must be positive")

    def trade_fee(self, quantity: float, price: float) -> float:
        return quantity * price * self.fee_rate

    def funding_periods(self, open_time: int, close_time: int) -> int:
        """Whole funding periods elapsed; partial periods count as zero."""

        periods = (close_time - open_time) // self.funding_period_ms
        return periods if periods > 0 else 0

    def funding_fee(self, quantity: float, price: float, open_time: int, close_time: int) -> float:
        periods = self.funding_periods(open_time, close_time)
        if periods == 0:
            return 0.0
        return quantity * price * self.funding_rate * periods
