import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rsisweep.config import AppSettings, RangeSetting, SweepConfig, years_ago_ms


def test_sweep_config_defaults():
    config = SweepConfig()

    assert config.symbol == "BTCUSDT"
    assert config.interval == "1h"
    assert config.initial_funding == 100.0
    assert config.fee_rate == 0.0005
    assert config.entry_level.minimum == 5
    assert config.entry_level.maximum == 100
    assert config.entry_level.step == 5
    assert config.leverage.maximum == 1
    assert config.sample_size is None
    assert config.max_drawdown_threshold == 0.5


def test_range_setting_accepts_min_max_keys():
    setting = RangeSetting.model_validate({"min": 2, "max": 10, "step": 4})

    assert (setting.minimum, setting.maximum, setting.step) == (2, 10, 4)


@pytest.mark.parametrize(
    "payload",
    [{"min": 10, "max": 2}, {"min": 1, "max": 2, "step": 0}, {"min": 0, "max": 2}],
)
def test_range_setting_rejects_invalid_ranges(payload):
    with pytest.raises(ValidationError):
        RangeSetting.model_validate(payload)


def test_sweep_config_from_json_merges_defaults(tmp_path):
    path = tmp_path / "sweep.json"
    path.write_text(json.dumps({
        "symbol": "ethusdt",
        "entry_level": {"min": 60, "max": 80, "step": 10},
        "sample_size": 25,
        "seed": 3,
    }))

    config = SweepConfig.from_json(path)

    assert config.symbol_upper == "ETHUSDT"
    assert config.entry_level.minimum == 60
    assert config.sample_size == 25
    assert config.seed == 3
    assert config.exit_level.maximum == 100


def test_sweep_config_rejects_non_positive_sample():
    with pytest.raises(ValidationError):
        SweepConfig(sample_size=0)


def test_years_ago_handles_leap_day():
    now = datetime(2024, 2, 29, 12, tzinfo=timezone.utc)

    expected = datetime(2014, 2, 28, tzinfo=timezone.utc)
    assert years_ago_ms(10, now=now) == int(expected.timestamp() * 1000)


def test_app_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BINANCE_FUTURES_BASE_URL", "https://example.test")
    monkeypatch.setenv("RSISWEEP_REQUEST_ATTEMPTS", "5")

    settings = AppSettings()

    assert settings.binance_base_url == "https://example.test"
    assert settings.request_attempts == 5
    assert settings.retry_delay == 1.0
