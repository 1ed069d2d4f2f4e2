"""Data schemas aligned with Binance futures kline payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Sequence

import pandas as pd
from pydantic import BaseModel, Field, model_validator

CANDLE_COLUMNS: tuple[str, ...] = (
    "open_time",
    "close_time",
    "open",
    "high",
    "low",
    "close",
    "volume",
)


class Candle(BaseModel):
    """One OHLCV candle; timestamps are epoch milliseconds."""

    open_time: int = Field(..., ge=0, description="Candle open time in ms.")
    close_time: int = Field(..., ge=0, description="Candle close time in ms.")
    open: float = Field(..., ge=0)
    high: float = Field(..., ge=0)
    low: float = Field(..., ge=0)
    close: float = Field(..., ge=0)
    volume: float = Field(0.0, ge=0)

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_times(self) -> "Candle":
        if self.close_time < self.open_time:
            raise ValueError("close_time must not precede open_time")
        return self

    @classmethod
    def from_kline(cls, row: Sequence[Any]) -> "Candle":
        """Create a :class:`Candle` from a raw ``/fapi/v1/klines`` row."""

        return cls(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
            close_time=int(row[6]),
        )

    def to_row(self) -> dict[str, float | int]:
        """Return the candle as a dictionary matching :data:`CANDLE_COLUMNS`."""

        return {
            "open_time": self.open_time,
            "close_time": self.close_time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


def normalize_candles(candles: Iterable[Candle]) -> tuple[Candle, ...]:
    """Sort by open time and drop repeated open times, keeping the first seen."""

    unique: dict[int, Candle] = {}
    for candle in candles:
        unique.setdefault(candle.open_time, candle)
    return tuple(unique[key] for key in sorted(unique))


@dataclass(slots=True)
class CandleFrame:
    """Helper to convert between candles and validated :class:`pandas.DataFrame` objects."""

    columns: ClassVar[tuple[str, ...]] = CANDLE_COLUMNS

    @classmethod
    def from_candles(cls, candles: Iterable[Candle]) -> pd.DataFrame:
        """Convert candles to a DataFrame ordered by open time without duplicates."""

        rows = [candle.to_row() for candle in normalize_candles(candles)]
        df = pd.DataFrame(rows, columns=cls.columns)
        df.reset_index(drop=True, inplace=True)
        return df

    @classmethod
    def ensure_schema(cls, df: pd.DataFrame) -> pd.DataFrame:
        """Ensure the DataFrame contains the expected columns in correct order."""

        missing = set(cls.columns) - set(df.columns)
        if missing:
            raise ValueError(
                f"DataFrame missing required columns: {sorted(missing)}")
        return df.loc[:, cls.columns].copy()

    @classmethod
    def to_candles(cls, df: pd.DataFrame) -> tuple[Candle, ...]:
        """Rebuild candles from a frame written by :meth:`from_candles`."""

        frame = cls.ensure_schema(df)
        candles = [
            Candle(
                open_time=int(row.open_time),
                close_time=int(row.close_time),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
            )
            for row in frame.itertuples(index=False)
        ]
        return normalize_candles(candles)
