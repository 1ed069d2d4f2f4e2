"""Backtest engine for the RSI long-only rule."""

from .engine import (
    BacktestConfig,
    BacktestEngine,
    BacktestResult,
    BacktestRun,
    RunStatus,
    StepOutcome,
    run_backtest,
)
from .fees import FeeModel
from .indicators import IndicatorSeries, MarketContext, RsiIndicatorCache, compute_rsi
from .portfolio import Position, PositionSide, SimulationState, TradeRecord
from .strategy import Signal, StrategyParameters

__all__ = [
    "BacktestConfig",
    "BacktestEngine",
    "BacktestResult",
    "BacktestRun",
    "FeeModel",
    "IndicatorSeries",
    "MarketContext",
    "Position",
    "PositionSide",
    "RsiIndicatorCache",
    "RunStatus",
    "Signal",
    "SimulationState",
    "StepOutcome",
    "StrategyParameters",
    "TradeRecord",
    "compute_rsi",
    "run_backtest",
]
