"""Sequential parameter sweep that keeps the run with the highest total return."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

import pandas as pd
from tqdm import tqdm

from ..backtest import BacktestConfig, BacktestEngine, BacktestResult, FeeModel, MarketContext
from ..backtest.strategy import StrategyParameters
from ..config import SweepConfig
from ..data.contracts import SymbolSpec
from ..data.schemas import Candle
from .parameters import RsiParameterSpec, sample_parameter_grid

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OptimizationOutcome:
    """Winner of a sweep plus bookkeeping.

    ``best_result is None`` means no combination produced a valid result.
    ``detailed_result`` is the winner re-run with its trade ledger.
    """

    best_result: BacktestResult | None
    detailed_result: BacktestResult | None
    evaluated: int
    completed: int
    invalidated: int

    @property
    def has_result(self) -> bool:
        return self.best_result is not None

    def summary_frame(self) -> pd.DataFrame:
        if self.best_result is None:
            return pd.DataFrame()
        payload = self.best_result.as_dict()
        payload.update(
            evaluated=self.evaluated,
            completed=self.completed,
            invalidated=self.invalidated,
        )
        return pd.DataFrame([payload])


def backtest_config_from_sweep(config: SweepConfig, *, record_trades: bool = False) -> BacktestConfig:
    return BacktestConfig(
        initial_fund=config.initial_funding,
        order_fraction=config.order_amount_fraction,
        fees=FeeModel(
            fee_rate=config.fee_rate,
            funding_rate=config.funding_rate,
            funding_period_ms=config.funding_period_ms,
        ),
        max_drawdown_threshold=config.max_drawdown_threshold,
        record_trades=record_trades,
    )


def optimize_rsi_parameters(
    context: MarketContext,
    candidates: Sequence[StrategyParameters],
    config: BacktestConfig,
    *,
    progress: bool = False,
) -> OptimizationOutcome:
    """Backtest every candidate and keep the best total return.

    Candidates run in the given order with the trade ledger disabled. Only
    completed runs with a positive final fund compete; on equal total return the
    earlier candidate is kept. The winner is then re-run once with the ledger
    enabled.
    """

    engine = BacktestEngine(context, replace(config, record_trades=False))

    best: BacktestResult | None = None
    completed = 0
    invalidated = 0
    iterator: Iterable[StrategyParameters] = candidates
    if progress:
        iterator = tqdm(candidates, desc="RSI sweep", unit="run")

    for parameters in iterator:
        run = engine.run(parameters)
        if run.result is None:
            invalidated += 1
            continue
        completed += 1
        result = run.result
        if result.final_fund <= 0:
            continue
        if best is None or result.total_return > best.total_return:
            best = result

    logger.info(
        "Evaluated %d combinations: %d completed, %d invalidated",
        len(candidates), completed, invalidated,
    )

    detailed: BacktestResult | None = None
    if best is not None:
        ledger_engine = BacktestEngine(context, replace(config, record_trades=True))
        detailed = ledger_engine.run(best.parameters).result
        logger.info("Best parameters %s, total return %.4f",
                    best.parameters.label(), best.total_return)

    return OptimizationOutcome(
        best_result=best,
        detailed_result=detailed,
        evaluated=len(candidates),
        completed=completed,
        invalidated=invalidated,
    )


def run_sweep(
    config: SweepConfig,
    candles: Sequence[Candle],
    symbol: SymbolSpec,
    *,
    rng: random.Random | None = None,
    progress: bool = False,
) -> tuple[MarketContext, OptimizationOutcome]:
    """Build the market context from ``config`` and run the full optimization."""

    spec = RsiParameterSpec.from_config(config)
    if rng is None and config.seed is not None:
        rng = random.Random(config.seed)
    candidates = sample_parameter_grid(spec, config.sample_size, rng=rng)
    logger.info("Sweeping %d of %d combinations", len(candidates), spec.combination_count())

    context = MarketContext.build(candles, spec.periods(), symbol)
    outcome = optimize_rsi_parameters(
        context,
        candidates,
        backtest_config_from_sweep(config),
        progress=progress,
    )
    return context, outcome


__all__ = [
    "OptimizationOutcome",
    "backtest_config_from_sweep",
    "optimize_rsi_parameters",
    "run_sweep",
]
