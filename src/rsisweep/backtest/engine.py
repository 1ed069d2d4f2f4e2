"""Backtest engine: replays candles for one parameter set through the position state machine."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict

from ..config import HOUR_MS
from .fees import FeeModel
from .indicators import IndicatorSeries, MarketContext
from .portfolio import Position, PositionSide, SimulationState, TradeRecord
from .strategy import Signal, StrategyParameters

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    LIQUIDATED = "LIQUIDATED"
    DRAWDOWN_EXCEEDED = "DRAWDOWN_EXCEEDED"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


@dataclass(slots=True, frozen=True)
class BacktestConfig:
    initial_fund: float = 100.0
    order_fraction: float = 1.0
    fees: FeeModel = field(default_factory=FeeModel)
    max_drawdown_threshold: float | None = None
    record_trades: bool = False

    def __post_init__(self) -> None:
        if self.initial_fund <= 0:
            raise ValueError("initial_fund must be positive")
        if not 0 < self.order_fraction <= 1:
            raise ValueError("order_fraction must be within (0, 1]")


@dataclass(slots=True, frozen=True)
class BacktestResult:
    parameters: StrategyParameters
    initial_fund: float
    final_fund: float
    total_pnl: float
    total_return: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    max_drawdown: float
    average_hold_hours: float
    trades: tuple[TradeRecord, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        payload = {key: value for key, value in asdict(self).items()
                   if key not in {"parameters", "trades"}}
        payload.update(asdict(self.parameters))
        return payload


@dataclass(slots=True, frozen=True)
class BacktestRun:
    parameters: StrategyParameters
    status: RunStatus
    result: BacktestResult | None = None

    @property
    def valid(self) -> bool:
        return self.status is RunStatus.COMPLETED


@dataclass(slots=True, frozen=True)
class StepOutcome:
    """Result of evaluating one candle: the run status and any trade closed on it."""

    status: RunStatus = RunStatus.RUNNING
    trade: TradeRecord | None = None


@dataclass(slots=True, frozen=True)
class _RunPlan:
    parameters: StrategyParameters
    entry_rsi: IndicatorSeries
    exit_rsi: IndicatorSeries


class BacktestEngine:
    """Run the RSI long-only rule over a prepared :class:`MarketContext`.

    The engine is deterministic: the same context, config and parameters always
    produce the same result. A liquidation or a drawdown above the configured
    threshold invalidates the whole run, even after profitable trades.
    """

    def __init__(self, context: MarketContext, config: BacktestConfig | None = None) -> None:
        self.context = context
        self.config = config or BacktestConfig()

    def run(self, parameters: StrategyParameters) -> BacktestRun:
        candles = self.context.candles
        if not candles:
            return BacktestRun(parameters=parameters, status=RunStatus.INSUFFICIENT_DATA)

        plan = _RunPlan(
            parameters=parameters,
            entry_rsi=self.context.rsi(parameters.entry_period),
            exit_rsi=self.context.rsi(parameters.exit_period),
        )
        state = SimulationState.start(self.config.initial_fund)

        for index in range(parameters.warmup, len(candles)):
            outcome = self.step(state, plan, index)
            if outcome.status is not RunStatus.RUNNING:
                logger.debug("Run %s invalidated at candle %d: %s",
                             parameters.label(), index, outcome.status.value)
                return BacktestRun(parameters=parameters, status=outcome.status)

        self.finish(state, parameters)
        return BacktestRun(
            parameters=parameters,
            status=RunStatus.COMPLETED,
            result=self._result(state, parameters),
        )

    def step(self, state: SimulationState, plan: _RunPlan, index: int) -> StepOutcome:
        """Advance ``state`` by the candle at ``index``.

        Signals use the RSI values of the previous candle. Entries and exits fill
        at the candle's open price.
        """

        candle = self.context.candles[index]
        prev_entry = plan.entry_rsi[index - 1]
        prev_exit = plan.exit_rsi[index - 1]
        if prev_entry is None or prev_exit is None:
            return StepOutcome()

        if state.position is not None:
            state.position.track(candle.high, candle.low)

        trade: TradeRecord | None = None
        signal = plan.parameters.signal(state.in_position, prev_entry, prev_exit)
        if signal is Signal.OPEN_LONG:
            self._open(state, plan.parameters, candle.open, candle.open_time,
                       candle.high, candle.low)
        elif signal is Signal.CLOSE_LONG:
            trade = self._close(state, plan.parameters, candle.open, candle.open_time)

        position = state.position
        if position is not None and candle.low < position.liquidation_price:
            return StepOutcome(status=RunStatus.LIQUIDATED, trade=trade)

        if position is not None or state.peak_equity > state.initial_fund:
            equity = state.equity(candle.close)
            if equity > state.peak_equity:
                state.peak_equity = equity
            else:
                drawdown = (state.peak_equity - equity) / state.peak_equity
                if drawdown > state.max_drawdown:
                    state.max_drawdown = drawdown
            threshold = self.config.max_drawdown_threshold
            if threshold is not None and state.max_drawdown > threshold:
                return StepOutcome(status=RunStatus.DRAWDOWN_EXCEEDED, trade=trade)
        elif state.fund > state.peak_equity:
            state.peak_equity = state.fund

        return StepOutcome(trade=trade)

    def finish(self, state: SimulationState, parameters: StrategyParameters) -> TradeRecord | None:
        """Force-close any open position at the last candle's close."""

        if state.position is None:
            return None
        last = self.context.candles[-1]
        state.position.track(last.high, last.low)
        return self._close(state, parameters, last.close, last.close_time)

    def _open(
        self,
        state: SimulationState,
        parameters: StrategyParameters,
        price: float,
        timestamp: int,
        high: float,
        low: float,
    ) -> None:
        if price <= 0:
            return
        leverage = parameters.leverage
        raw_quantity = state.fund * self.config.order_fraction * leverage / price
        quantity = self.context.symbol.round_quantity(raw_quantity)
        margin = quantity * price / leverage
        fee = self.config.fees.trade_fee(quantity, price)
        state.fund -= margin + fee
        state.position = Position(
            side=PositionSide.LONG,
            entry_price=price,
            quantity=quantity,
            margin=margin,
            entry_time=timestamp,
            liquidation_price=price * (1 - 1 / leverage),
            running_high=high,
            running_low=low,
            open_fee=fee,
        )

    def _close(
        self,
        state: SimulationState,
        parameters: StrategyParameters,
        price: float,
        timestamp: int,
    ) -> TradeRecord | None:
        position = state.position
        if position is None:
            return None
        fees = self.config.fees
        close_fee = fees.trade_fee(position.quantity, price)
        funding_fee = fees.funding_fee(position.quantity, price, position.entry_time, timestamp)
        pnl = position.unrealized_pnl(price) - close_fee - funding_fee
        state.fund += position.margin + pnl

        trade: TradeRecord | None = None
        if self.config.record_trades:
            mae, mfe = position.excursions()
            trade = TradeRecord(
                open_price=position.entry_price,
                close_price=price,
                open_time=position.entry_time,
                close_time=timestamp,
                quantity=position.quantity,
                pnl=pnl,
                pnl_percent=pnl / position.margin if position.margin else 0.0,
                hold_hours=(timestamp - position.entry_time) / HOUR_MS,
                mae=mae,
                mfe=mfe,
                mae_leveraged=mae * parameters.leverage,
                mfe_leveraged=mfe * parameters.leverage,
                fund_after=state.fund,
                fees=position.open_fee + close_fee,
                funding_fee=funding_fee,
            )
            state.trades.append(trade)

        state.record_close(pnl, position.entry_time, timestamp)
        state.position = None
        return trade

    def _result(self, state: SimulationState, parameters: StrategyParameters) -> BacktestResult:
        initial = state.initial_fund
        total = state.total_trades
        return BacktestResult(
            parameters=parameters,
            initial_fund=initial,
            final_fund=state.fund,
            total_pnl=state.total_pnl,
            total_return=(state.fund - initial) / initial,
            total_trades=total,
            winning_trades=state.winning_trades,
            losing_trades=state.losing_trades,
            win_rate=state.winning_trades / total if total else 0.0,
            max_drawdown=state.max_drawdown,
            average_hold_hours=state.total_hold_hours / total if total else 0.0,
            trades=tuple(state.trades),
        )


def run_backtest(
    context: MarketContext,
    parameters: StrategyParameters,
    config: BacktestConfig | None = None,
) -> BacktestResult | None:
    """Return the completed result, or ``None`` when the run was invalidated."""

    return BacktestEngine(context, config).run(parameters).result
