#!/usr/bin/env python3
"""Run an RSI parameter sweep on Binance futures candles and write a text report."""

from __future__ import annotations

import argparse
import logging
import random
import time
from pathlib import Path

from rsisweep.config import AppSettings, SweepConfig
from rsisweep.data import ParquetCandleStore, load_market_data
from rsisweep.experiments import (
    compute_buy_and_hold,
    compute_performance_metrics,
    run_sweep,
)
from rsisweep.experiments.optimizer import backtest_config_from_sweep
from rsisweep.report import format_report, write_report

logger = logging.getLogger("rsisweep.cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "config",
        type=Path,
        nargs="?",
        default=None,
        help="Optional JSON file with sweep options; defaults are used when omitted.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the report file (defaults to the configured reports path).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for sampled sweeps; overrides the config seed.",
    )
    parser.add_argument(
        "--cache",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Reuse and store candles in the local Parquet cache.",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the sweep progress bar.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def load_config(path: Path | None) -> SweepConfig:
    if path is None:
        return SweepConfig()
    return SweepConfig.from_json(path)


def main(argv: list[str] | None = None) -> Path:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = AppSettings()
    config = load_config(args.config)
    seed = args.seed if args.seed is not None else config.seed
    rng = random.Random(seed) if seed is not None else None

    started = time.monotonic()
    store = ParquetCandleStore(settings.data_paths.cache) if args.cache else None
    market = load_market_data(config, settings=settings, store=store)
    context, outcome = run_sweep(
        config,
        market.candles,
        market.symbol,
        rng=rng,
        progress=not args.no_progress,
    )

    metrics = None
    buy_and_hold = None
    if outcome.best_result is not None:
        trades = outcome.detailed_result.trades if outcome.detailed_result else ()
        metrics = compute_performance_metrics(outcome.best_result, trades, context.candles)
        backtest_config = backtest_config_from_sweep(config)
        buy_and_hold = compute_buy_and_hold(
            context.candles,
            market.symbol,
            fees=backtest_config.fees,
            initial_fund=config.initial_funding,
            order_fraction=config.order_amount_fraction,
        )

    report = format_report(outcome, metrics, buy_and_hold, time.monotonic() - started)
    path = write_report(report, args.output_dir or settings.data_paths.reports)
    if outcome.has_result:
        logger.info("Backtest completed successfully")
    else:
        logger.warning("No valid result found")
    logger.info("Report saved to: %s", path)
    return path


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
