"""Application configuration helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
DEFAULT_FUNDING_PERIOD_MS = 8 * HOUR_MS


def years_ago_ms(years: int, *, now: datetime | None = None) -> int:
    """Return epoch milliseconds for UTC midnight of the same calendar day ``years`` ago.

    The result is stable for a whole UTC day.
    """

    current = (now or datetime.now(tz=timezone.utc)).astimezone(timezone.utc)
    current = current.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        target = current.replace(year=current.year - years)
    except ValueError:  # 29 February
        target = current.replace(year=current.year - years, day=28)
    return int(target.timestamp() * 1000)


class DataPaths(BaseModel):
    """Filesystem locations for cached candles and generated reports."""

    cache: Path = Field(default=Path("data/cache"))
    reports: Path = Field(default=Path("reports"))


class RangeSetting(BaseModel):
    """Inclusive ``{min, max, step}`` range for one sweep dimension."""

    model_config = {"populate_by_name": True, "frozen": True}

    minimum: int = Field(..., alias="min", gt=0)
    maximum: int = Field(..., alias="max", gt=0)
    step: int = Field(1, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "RangeSetting":
        if self.maximum < self.minimum:
            raise ValueError("range max must be >= min")
        return self


def _default_range() -> RangeSetting:
    return RangeSetting(minimum=5, maximum=100, step=5)


class SweepConfig(BaseModel):
    """Options for one parameter sweep over a single symbol."""

    model_config = {"frozen": True}

    symbol: str = "BTCUSDT"
    interval: str = "1h"
    page_limit: int = Field(1500, gt=0, le=1500)
    order_amount_fraction: float = Field(1.0, gt=0, le=1)
    initial_funding: float = Field(100.0, gt=0)
    fee_rate: float = Field(0.0005, ge=0)
    funding_rate: float = 0.0001
    funding_period_ms: int = Field(DEFAULT_FUNDING_PERIOD_MS, gt=0)
    entry_period: RangeSetting = Field(default_factory=_default_range)
    exit_period: RangeSetting = Field(default_factory=_default_range)
    entry_level: RangeSetting = Field(default_factory=_default_range)
    exit_level: RangeSetting = Field(default_factory=_default_range)
    leverage: RangeSetting = Field(
        default_factory=lambda: RangeSetting(minimum=1, maximum=1, step=1))
    sample_size: int | None = Field(None, gt=0)
    seed: int | None = None
    start_time: int = Field(default_factory=lambda: years_ago_ms(10))
    extend_to_now: bool = True
    max_drawdown_threshold: float | None = Field(0.5, gt=0)

    @property
    def symbol_upper(self) -> str:
        return self.symbol.upper()

    @classmethod
    def from_json(cls, path: Path) -> "SweepConfig":
        """Load a configuration file; missing keys fall back to defaults."""

        payload = json.loads(Path(path).read_text())
        return cls.model_validate(payload)


class AppSettings(BaseSettings):
    """Project-wide settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    binance_base_url: str = Field(
        default="https://fapi.binance.com", alias="BINANCE_FUTURES_BASE_URL")
    request_timeout: float = Field(default=30.0, alias="RSISWEEP_REQUEST_TIMEOUT")
    request_attempts: int = Field(default=3, ge=1, alias="RSISWEEP_REQUEST_ATTEMPTS")
    retry_delay: float = Field(default=1.0, ge=0, alias="RSISWEEP_RETRY_DELAY")
    data_paths: DataPaths = Field(default_factory=DataPaths)
