"""Parameter sweeps, optimization and performance metrics."""

from .metrics import (
    BuyAndHoldResult,
    PerformanceMetrics,
    compute_buy_and_hold,
    compute_performance_metrics,
    trades_frame,
)
from .optimizer import (
    OptimizationOutcome,
    backtest_config_from_sweep,
    optimize_rsi_parameters,
    run_sweep,
)
from .parameters import (
    ParameterRange,
    RsiParameterSpec,
    generate_parameter_grid,
    sample_parameter_grid,
)

__all__ = [
    "BuyAndHoldResult",
    "OptimizationOutcome",
    "ParameterRange",
    "PerformanceMetrics",
    "RsiParameterSpec",
    "backtest_config_from_sweep",
    "compute_buy_and_hold",
    "compute_performance_metrics",
    "generate_parameter_grid",
    "optimize_rsi_parameters",
    "run_sweep",
    "sample_parameter_grid",
    "trades_frame",
]
