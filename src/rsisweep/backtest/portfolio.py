"""Position and trade-ledger accounting primitives for backtesting."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ..config import HOUR_MS


class PositionSide(str, Enum):
    LONG = "LONG"


@dataclass(slots=True)
class Position:
    side: PositionSide
    entry_price: float
    quantity: float
    margin: float
    entry_time: int
    liquidation_price: float
    running_high: float
    running_low: float
    open_fee: float = 0.0

    def track(self, high: float, low: float) -> None:
        if high > self.running_high:
            self.running_high = high
        if low < self.running_low:
            self.running_low = low

    def unrealized_pnl(self, price: float) -> float:
        return (price - self.entry_price) * self.quantity

    def excursions(self) -> tuple[float, float]:
        """Return ``(mae, mfe)`` relative to the entry price."""

        mae = -(self.entry_price - self.running_low) / self.entry_price
        mfe = (self.running_high - self.entry_price) / self.entry_price
        return mae, mfe


@dataclass(slots=True, frozen=True)
class TradeRecord:
    open_price: float
    close_price: float
    open_time: int
    close_time: int
    quantity: float
    pnl: float
    pnl_percent: float
    hold_hours: float
    mae: float
    mfe: float
    mae_leveraged: float
    mfe_leveraged: float
    fund_after: float
    fees: float = 0.0
    funding_fee: float = 0.0


@dataclass(slots=True)
class SimulationState:
    """Everything one simulation run mutates; never shared between runs."""

    fund: float
    initial_fund: float
    position: Position | None = None
    peak_equity: float = 0.0
    max_drawdown: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_pnl: float = 0.0
    total_hold_hours: float = 0.0
    trades: List[TradeRecord] = field(default_factory=list)

    @classmethod
    def start(cls, initial_fund: float) -> "SimulationState":
        return cls(fund=initial_fund, initial_fund=initial_fund, peak_equity=initial_fund)

    @property
    def in_position(self) -> bool:
        return self.position is not None

    def equity(self, price: float) -> float:
        """Mark-to-market equity: free fund plus margin and unrealized pnl."""

        if self.position is None:
            return self.fund
        return self.fund + self.position.margin + self.position.unrealized_pnl(price)

    def record_close(self, pnl: float, open_time: int, close_time: int) -> None:
        self.total_trades += 1
        self.total_pnl += pnl
        if pnl > 0:
            self.winning_trades += 1
        else:
            self.losing_trades += 1
        self.total_hold_hours += (close_time - open_time) / HOUR_MS
