import random

import pytest

from rsisweep.backtest.strategy import StrategyParameters
from rsisweep.config import RangeSetting, SweepConfig
from rsisweep.experiments.parameters import (
    ParameterRange,
    RsiParameterSpec,
    generate_parameter_grid,
    sample_parameter_grid,
)


def _spec(**overrides) -> RsiParameterSpec:
    ranges = {
        "entry_period": ParameterRange(1, 1),
        "exit_period": ParameterRange(1, 1),
        "entry_level": ParameterRange(1, 1),
        "exit_level": ParameterRange(1, 1),
        "leverage": ParameterRange(1, 1),
    }
    ranges.update(overrides)
    return RsiParameterSpec(**ranges)


def test_parameter_range_is_inclusive():
    assert ParameterRange(1, 3, 1).values() == [1, 2, 3]
    assert ParameterRange(5, 12, 5).values() == [5, 10]
    assert ParameterRange(7, 7, 3).values() == [7]


@pytest.mark.parametrize("bad", [ParameterRange(1, 3, 0), ParameterRange(4, 3, 1)])
def test_parameter_range_rejects_invalid_bounds(bad):
    with pytest.raises(ValueError):
        bad.values()


def test_single_dimension_grid_enumerates_range():
    grid = generate_parameter_grid(_spec(exit_level=ParameterRange(1, 3, 1)))

    assert [params.exit_level for params in grid] == [1, 2, 3]


def test_grid_nests_leverage_outermost_and_exit_level_innermost():
    spec = _spec(
        leverage=ParameterRange(1, 2),
        entry_period=ParameterRange(3, 4),
        exit_level=ParameterRange(10, 20, 10),
    )

    grid = generate_parameter_grid(spec)

    assert [(p.leverage, p.entry_period, p.exit_level) for p in grid] == [
        (1, 3, 10),
        (1, 3, 20),
        (1, 4, 10),
        (1, 4, 20),
        (2, 3, 10),
        (2, 3, 20),
        (2, 4, 10),
        (2, 4, 20),
    ]
    assert spec.combination_count() == len(grid)


def test_sample_larger_than_space_returns_full_grid():
    spec = _spec(entry_level=ParameterRange(1, 3), exit_level=ParameterRange(1, 2))

    sampled = sample_parameter_grid(spec, 100, rng=random.Random(1))

    assert sampled == generate_parameter_grid(spec)
    assert sample_parameter_grid(spec, None) == generate_parameter_grid(spec)


def test_sample_draws_without_replacement_and_is_reproducible():
    spec = _spec(entry_level=ParameterRange(1, 10), exit_level=ParameterRange(1, 10))
    full = set(generate_parameter_grid(spec))

    first = sample_parameter_grid(spec, 15, rng=random.Random(42))
    second = sample_parameter_grid(spec, 15, rng=random.Random(42))

    assert first == second
    assert len(first) == 15
    assert len(set(first)) == 15
    assert set(first) <= full


def test_sample_rejects_non_positive_size():
    with pytest.raises(ValueError):
        sample_parameter_grid(_spec(), 0)


def test_parameter_spec_periods_is_union_of_lookbacks():
    spec = _spec(entry_period=ParameterRange(5, 15, 5), exit_period=ParameterRange(10, 20, 10))

    assert spec.periods() == [5, 10, 15, 20]


def test_parameter_spec_from_config_uses_every_range():
    config = SweepConfig(
        entry_period=RangeSetting(minimum=2, maximum=4, step=2),
        exit_period=RangeSetting(minimum=3, maximum=3),
        entry_level=RangeSetting(minimum=50, maximum=70, step=10),
        exit_level=RangeSetting(minimum=30, maximum=30),
        leverage=RangeSetting(minimum=1, maximum=3, step=2),
    )

    spec = RsiParameterSpec.from_config(config)

    assert spec.entry_period.values() == [2, 4]
    assert spec.leverage.values() == [1, 3]
    assert spec.combination_count() == 2 * 1 * 3 * 1 * 2


def test_strategy_parameters_have_value_identity():
    first = StrategyParameters(14, 7, 60, 40, 2)
    second = StrategyParameters(14, 7, 60, 40, 2)

    assert first == second
    assert len({first, second}) == 1
    assert first.warmup == 15
    assert "leverage=2x" in first.label()
