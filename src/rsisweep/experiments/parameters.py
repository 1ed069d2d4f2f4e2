"""Parameter space generation and sampling for RSI sweeps."""

from __future__ import annotations

import random
from dataclasses import dataclass
from itertools import product
from typing import List

from ..backtest.strategy import StrategyParameters
from ..config import RangeSetting, SweepConfig


@dataclass(slots=True, frozen=True)
class ParameterRange:
    """Inclusive integer range definition with step."""

    minimum: int
    maximum: int
    step: int = 1

    def values(self) -> List[int]:
        if self.step <= 0:
            raise ValueError("Range step must be positive")
        if self.maximum < self.minimum:
            raise ValueError("Range maximum must be >= minimum")
        count = ((self.maximum - self.minimum) // self.step) + 1
        return [self.minimum + idx * self.step for idx in range(count)]

    @classmethod
    def from_setting(cls, setting: RangeSetting) -> "ParameterRange":
        return cls(setting.minimum, setting.maximum, setting.step)


@dataclass(slots=True, frozen=True)
class RsiParameterSpec:
    entry_period: ParameterRange
    exit_period: ParameterRange
    entry_level: ParameterRange
    exit_level: ParameterRange
    leverage: ParameterRange = ParameterRange(1, 1, 1)

    @classmethod
    def from_config(cls, config: SweepConfig) -> "RsiParameterSpec":
        return cls(
            entry_period=ParameterRange.from_setting(config.entry_period),
            exit_period=ParameterRange.from_setting(config.exit_period),
            entry_level=ParameterRange.from_setting(config.entry_level),
            exit_level=ParameterRange.from_setting(config.exit_level),
            leverage=ParameterRange.from_setting(config.leverage),
        )

    def periods(self) -> List[int]:
        """Union of every lookback the sweep needs an RSI series for."""

        return sorted(set(self.entry_period.values()) | set(self.exit_period.values()))

    def combination_count(self) -> int:
        return (
            len(self.leverage.values())
            * len(self.entry_period.values())
            * len(self.exit_period.values())
            * len(self.entry_level.values())
            * len(self.exit_level.values())
        )


def generate_parameter_grid(spec: RsiParameterSpec) -> List[StrategyParameters]:
    """Enumerate every combination, leverage outermost and exit level innermost."""

    return [
        StrategyParameters(
            entry_period=entry_period,
            exit_period=exit_period,
            entry_level=entry_level,
            exit_level=exit_level,
            leverage=leverage,
        )
        for leverage, entry_period, exit_period, entry_level, exit_level in product(
            spec.leverage.values(),
            spec.entry_period.values(),
            spec.exit_period.values(),
            spec.entry_level.values(),
            spec.exit_level.values(),
        )
    ]


def sample_parameter_grid(
    spec: RsiParameterSpec,
    sample_size: int | None = None,
    *,
    rng: random.Random | None = None,
) -> List[StrategyParameters]:
    """Return the full grid, or ``sample_size`` combinations drawn without replacement.

    Sampling shuffles the fully materialized grid (Fisher-Yates via
    :meth:`random.Random.shuffle`) and keeps the first ``sample_size`` entries.
    Pass a seeded ``rng`` for reproducible samples.
    """

    if sample_size is not None and sample_size <= 0:
        raise ValueError("sample_size must be positive")
    grid = generate_parameter_grid(spec)
    if sample_size is None or sample_size >= len(grid):
        return grid
    rng = rng or random.Random()
    shuffled = list(grid)
    rng.shuffle(shuffled)
    return shuffled[:sample_size]


__all__ = [
    "ParameterRange",
    "RsiParameterSpec",
    "generate_parameter_grid",
    "sample_parameter_grid",
]
