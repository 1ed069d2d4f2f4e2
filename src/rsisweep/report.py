"""Plain-text sweep report formatting and persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from math import isinf
from pathlib import Path

from .backtest.portfolio import TradeRecord
from .experiments.metrics import BuyAndHoldResult, PerformanceMetrics
from .experiments.optimizer import OptimizationOutcome

RULE = "=" * 60


def readable_time(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def signed_pct(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value * 100:.2f}%"


def format_runtime(seconds: float) -> str:
    minutes = int(seconds // 60)
    remainder = seconds % 60
    if minutes > 0:
        return f"{minutes} minute(s) {remainder:.2f} second(s)"
    return f"{remainder:.2f} second(s)"


def _ratio_line(label: str, value: float, infinite_note: str) -> str:
    if isinf(value):
        return f"  {label:<18}∞ ({infinite_note})\n"
    if value > 0:
        return f"  {label:<18}{value:.2f}\n"
    return ""


def _trade_block(title: str, trade: TradeRecord | None) -> str:
    if trade is None:
        return ""
    return (
        f"\n{title}\n"
        f"  Return:           {signed_pct(trade.pnl_percent)}\n"
        f"  PnL:              {trade.pnl:+.2f}\n"
        f"  Entry Price:      {trade.open_price:.2f}\n"
        f"  Exit Price:       {trade.close_price:.2f}\n"
        f"  Time:             {readable_time(trade.open_time)} ~ {readable_time(trade.close_time)}\n"
        f"  Hold Time:        {trade.hold_hours:.2f} hours\n"
        f"  MAE:              {trade.mae * 100:.2f}% ({trade.mae_leveraged * 100:.2f}% lev)\n"
        f"  MFE:              {trade.mfe * 100:.2f}% ({trade.mfe_leveraged * 100:.2f}% lev)\n"
    )


def _ledger(trades: tuple[TradeRecord, ...]) -> str:
    if not trades:
        return ""
    lines = [
        "",
        RULE,
        "Detailed Trade Records",
        RULE,
        "",
        "Index | Entry Time | Exit Time | Entry Price | Exit Price | PnL | PnL % | Fees | Hold Hours | MAE | MFE",
        "-" * 128,
    ]
    for index, trade in enumerate(trades, start=1):
        lines.append(
            f"{index:>5} | {readable_time(trade.open_time)} | {readable_time(trade.close_time)} | "
            f"{trade.open_price:.2f} | {trade.close_price:.2f} | {trade.pnl:+.2f} | "
            f"{signed_pct(trade.pnl_percent)} | {trade.fees + trade.funding_fee:.4f} | "
            f"{trade.hold_hours:.2f} | "
            f"{trade.mae * 100:.2f}% | {trade.mfe * 100:.2f}%"
        )
    return "\n".join(lines) + "\n"


def format_report(
    outcome: OptimizationOutcome,
    metrics: PerformanceMetrics | None,
    buy_and_hold: BuyAndHoldResult | None = None,
    runtime_seconds: float = 0.0,
) -> str:
    """Render the sweep winner, its statistics and its trade ledger."""

    best = outcome.best_result
    if best is None or metrics is None:
        return f"\n{RULE}\nNo valid result found\n{RULE}\n"

    params = best.parameters
    report = f"\n{RULE}\nBacktest Results Summary\n{RULE}\n"

    report += "\nCore Performance\n"
    report += f"  Final Fund:       {best.final_fund:.2f}\n"
    report += f"  Total Return:     {signed_pct(best.total_return)}\n"
    if metrics.backtest_days > 0:
        report += f"  Annualized Return: {signed_pct(metrics.annualized_return)}\n"
    if buy_and_hold is not None:
        diff = best.total_return - buy_and_hold.total_return
        verdict = "OUTPERFORMS" if diff >= 0 else "UNDERPERFORMS"
        report += f"  vs Spot Holder: {verdict} by {abs(diff) * 100:.2f}%\n"

    report += "\nStrategy Parameters\n"
    report += f"  RSI Long Period:  {params.entry_period}\n"
    report += f"  RSI Short Period: {params.exit_period}\n"
    report += f"  RSI Long Level:   {params.entry_level}\n"
    report += f"  RSI Short Level:  {params.exit_level}\n"
    report += f"  Leverage:         {params.leverage}x\n"

    report += "\nRisk Metrics\n"
    report += f"  Max Drawdown:     {best.max_drawdown * 100:.2f}%\n"
    report += _ratio_line("Calmar Ratio:", metrics.calmar_ratio, "No drawdown")
    if metrics.sharpe_ratio != 0:
        report += f"  Sharpe Ratio:     {metrics.sharpe_ratio:.2f}\n"
    if metrics.sortino_ratio != 0:
        report += f"  Sortino Ratio:    {metrics.sortino_ratio:.2f}\n"

    report += "\nTrading Statistics\n"
    report += f"  Total Trades:     {best.total_trades}\n"
    report += f"  Win Rate:         {best.win_rate * 100:.2f}%\n"
    report += _ratio_line("Profit Factor:", metrics.profit_factor, "No losses")
    report += f"  Avg Hold Time:    {best.average_hold_hours:.2f} hours\n"
    report += f"  Exposure:         {metrics.exposure_pct:.2f}%\n"
    trades = outcome.detailed_result.trades if outcome.detailed_result else ()
    if trades:
        report += (f"  Avg MAE:          {metrics.avg_mae * 100:.2f}% "
                   f"({metrics.avg_mae_leveraged * 100:.2f}% lev)\n")
        report += (f"  Avg MFE:          {metrics.avg_mfe * 100:.2f}% "
                   f"({metrics.avg_mfe_leveraged * 100:.2f}% lev)\n")
        report += f"  Trading Fees:     {sum(trade.fees for trade in trades):.4f}\n"
        report += f"  Funding Fees:     {sum(trade.funding_fee for trade in trades):.4f}\n"

    report += "\nBacktest Period\n"
    report += f"  Duration:         {metrics.backtest_days:.2f} days\n"
    report += f"  {readable_time(metrics.start_time)} ~ {readable_time(metrics.end_time)}\n"

    report += _trade_block("Best Trade", metrics.best_trade)
    report += _trade_block("Worst Trade", metrics.worst_trade)

    report += f"\n{RULE}\nExecution Time\n"
    report += f"  Total Runtime:    {format_runtime(runtime_seconds)}\n"
    report += f"  Combinations:     {outcome.evaluated} "
    report += f"({outcome.completed} completed, {outcome.invalidated} invalidated)\n"
    report += f"{RULE}\n"

    report += _ledger(trades)
    return report


def write_report(report: str, directory: Path, *, now: datetime | None = None) -> Path:
    """Write ``report`` to ``backtest-report-<timestamp>.txt`` under ``directory``."""

    moment = now or datetime.now(tz=timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S-%f")
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"backtest-report-{stamp}.txt"
    path.write_text(report, encoding="utf-8")
    return path
