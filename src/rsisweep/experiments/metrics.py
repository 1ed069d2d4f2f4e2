"""Risk and performance metrics computed from a winning run's trade ledger."""

from __future__ import annotations

import statistics
from dataclasses import asdict, dataclass, field
from math import inf, sqrt
from typing import Any, Dict, List, Sequence

import pandas as pd

from ..backtest.engine import BacktestResult
from ..backtest.fees import FeeModel
from ..backtest.portfolio import TradeRecord
from ..config import DAY_MS
from ..data.contracts import SymbolSpec
from ..data.schemas import Candle


@dataclass(slots=True)
class PerformanceMetrics:
    """Container for the post-hoc statistics reported for the winning run."""

    best_trade: TradeRecord | None
    worst_trade: TradeRecord | None
    gross_profit: float
    gross_loss: float
    profit_factor: float
    avg_mae: float
    avg_mfe: float
    avg_mae_leveraged: float
    avg_mfe_leveraged: float
    start_time: int
    end_time: int
    backtest_days: float
    annualized_return: float
    calmar_ratio: float
    exposure_pct: float
    sharpe_ratio: float
    sortino_ratio: float
    trade_returns: List[float] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("best_trade")
        payload.pop("worst_trade")
        payload.pop("trade_returns")
        return payload


@dataclass(slots=True, frozen=True)
class BuyAndHoldResult:
    final_fund: float
    total_return: float
    quantity: float


def compute_performance_metrics(
    result: BacktestResult,
    trades: Sequence[TradeRecord],
    candles: Sequence[Candle],
) -> PerformanceMetrics:
    """Compute the report statistics for ``result`` using its trade ledger.

    ``trades`` usually comes from a second, ledger-enabled run of the winning
    parameters; ``candles`` define the backtest period.
    """

    best, worst = best_and_worst_trades(trades)
    gross_profit, gross_loss, factor = profit_factor(trades)
    avg_mae, avg_mfe, avg_mae_lev, avg_mfe_lev = average_excursions(trades)

    start_time = candles[0].open_time if candles else 0
    end_time = candles[-1].close_time if candles else 0
    days = (end_time - start_time) / DAY_MS

    annualized = annualized_return(result.total_return, days)
    returns = trade_returns(trades, result.initial_fund)
    return PerformanceMetrics(
        best_trade=best,
        worst_trade=worst,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        profit_factor=factor,
        avg_mae=avg_mae,
        avg_mfe=avg_mfe,
        avg_mae_leveraged=avg_mae_lev,
        avg_mfe_leveraged=avg_mfe_lev,
        start_time=start_time,
        end_time=end_time,
        backtest_days=days,
        annualized_return=annualized,
        calmar_ratio=calmar_ratio(annualized, result.max_drawdown),
        exposure_pct=exposure_pct(trades, start_time, end_time),
        sharpe_ratio=sharpe_ratio(returns, days),
        sortino_ratio=sortino_ratio(returns, days),
        trade_returns=returns,
    )


def best_and_worst_trades(trades: Sequence[TradeRecord]) -> tuple[TradeRecord | None, TradeRecord | None]:
    if not trades:
        return None, None
    ranked = sorted(trades, key=lambda trade: trade.pnl_percent, reverse=True)
    return ranked[0], ranked[-1]


def profit_factor(trades: Sequence[TradeRecord]) -> tuple[float, float, float]:
    """Return ``(gross_profit, gross_loss, profit_factor)``.

    The factor is infinite with profits and no losses, and zero without profits.
    """

    gross_profit = sum(trade.pnl for trade in trades if trade.pnl > 0)
    gross_loss = abs(sum(trade.pnl for trade in trades if trade.pnl < 0))
    if gross_loss > 0:
        factor = gross_profit / gross_loss
    else:
        factor = inf if gross_profit > 0 else 0.0
    return gross_profit, gross_loss, factor


def average_excursions(trades: Sequence[TradeRecord]) -> tuple[float, float, float, float]:
    if not trades:
        return 0.0, 0.0, 0.0, 0.0
    return (
        statistics.fmean(trade.mae for trade in trades),
        statistics.fmean(trade.mfe for trade in trades),
        statistics.fmean(trade.mae_leveraged for trade in trades),
        statistics.fmean(trade.mfe_leveraged for trade in trades),
    )


def annualized_return(total_return: float, days: float) -> float:
    if days <= 0:
        return 0.0
    growth = 1.0 + total_return
    if growth <= 0:
        return -1.0
    return growth ** (365 / days) - 1.0


def calmar_ratio(annualized: float, max_drawdown: float) -> float:
    if max_drawdown > 0:
        return annualized / max_drawdown
    return inf if annualized > 0 else 0.0


def trade_returns(trades: Sequence[TradeRecord], initial_fund: float) -> List[float]:
    """Fund-to-fund return of each trade, in ledger order."""

    returns: List[float] = []
    previous = initial_fund
    for trade in trades:
        returns.append((trade.fund_after - previous) / previous if previous else 0.0)
        previous = trade.fund_after
    return returns


def exposure_pct(trades: Sequence[TradeRecord], start_time: int, end_time: int) -> float:
    total = end_time - start_time
    if total <= 0:
        return 0.0
    held = sum(trade.close_time - trade.open_time for trade in trades)
    return held / total * 100.0


def _trades_per_year(count: int, days: float) -> float:
    return count / days * 365


def sharpe_ratio(returns: Sequence[float], days: float) -> float:
    """Per-trade Sharpe annualized by the observed trade frequency."""

    if len(returns) <= 1:
        return 0.0
    std_dev = statistics.stdev(returns)
    if std_dev <= 0 or days <= 0:
        return 0.0
    per_year = _trades_per_year(len(returns), days)
    return (statistics.fmean(returns) * per_year) / (std_dev * sqrt(per_year))


def sortino_ratio(returns: Sequence[float], days: float) -> float:
    """Like :func:`sharpe_ratio` but only negative returns count as risk."""

    if len(returns) <= 1:
        return 0.0
    downside = [value for value in returns if value < 0]
    if not downside:
        return 0.0
    downside_dev = sqrt(sum(value * value for value in downside) / len(downside))
    if downside_dev <= 0 or days <= 0:
        return 0.0
    per_year = _trades_per_year(len(returns), days)
    return (statistics.fmean(returns) * per_year) / (downside_dev * sqrt(per_year))


def compute_buy_and_hold(
    candles: Sequence[Candle],
    symbol: SymbolSpec,
    *,
    fees: FeeModel,
    initial_fund: float,
    order_fraction: float = 1.0,
) -> BuyAndHoldResult | None:
    """Unleveraged spot baseline: buy the first open, sell the last close."""

    if not candles:
        return None
    buy_price = candles[0].open
    sell_price = candles[-1].close
    if buy_price <= 0:
        return None
    quantity = symbol.round_quantity(initial_fund * order_fraction / buy_price)
    open_fee = fees.trade_fee(quantity, buy_price)
    close_fee = fees.trade_fee(quantity, sell_price)
    pnl = (sell_price - buy_price) * quantity - close_fee
    final_fund = initial_fund - open_fee + pnl
    return BuyAndHoldResult(
        final_fund=final_fund,
        total_return=(final_fund - initial_fund) / initial_fund,
        quantity=quantity,
    )


def trades_frame(trades: Sequence[TradeRecord]) -> pd.DataFrame:
    """Export the ledger as a DataFrame with UTC timestamps."""

    columns = [name for name in TradeRecord.__dataclass_fields__]
    frame = pd.DataFrame([asdict(trade) for trade in trades], columns=columns)
    if not frame.empty:
        frame["open_time"] = pd.to_datetime(frame["open_time"], unit="ms", utc=True)
        frame["close_time"] = pd.to_datetime(frame["close_time"], unit="ms", utc=True)
    return frame


__all__ = [
    "BuyAndHoldResult",
    "PerformanceMetrics",
    "annualized_return",
    "average_excursions",
    "best_and_worst_trades",
    "calmar_ratio",
    "compute_buy_and_hold",
    "compute_performance_metrics",
    "exposure_pct",
    "profit_factor",
    "sharpe_ratio",
    "sortino_ratio",
    "trade_returns",
    "trades_frame",
]
