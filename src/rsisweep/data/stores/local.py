"""Local persistence helpers for historical candles."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from ..schemas import Candle, CandleFrame


class ParquetCandleStore:
    """Read/write helper that persists candles as Parquet files."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, symbol: str, interval: str, start_time: int) -> Path:
        filename = f"{symbol.upper()}_{interval.replace(' ', '').lower()}_{start_time}.parquet"
        return self.root / filename

    def exists(self, symbol: str, interval: str, start_time: int) -> bool:
        return self.path_for(symbol, interval, start_time).exists()

    def save(self, symbol: str, interval: str, start_time: int, candles: Iterable[Candle]) -> Path:
        frame = CandleFrame.from_candles(candles)
        path = self.path_for(symbol, interval, start_time)
        frame.to_parquet(path, engine="pyarrow", index=False)
        return path

    def load_frame(self, symbol: str, interval: str, start_time: int) -> pd.DataFrame:
        path = self.path_for(symbol, interval, start_time)
        if not path.exists():
            raise FileNotFoundError(path)
        df = pd.read_parquet(path, engine="pyarrow")
        return CandleFrame.ensure_schema(df)

    def load(self, symbol: str, interval: str, start_time: int) -> tuple[Candle, ...]:
        return CandleFrame.to_candles(self.load_frame(symbol, interval, start_time))
