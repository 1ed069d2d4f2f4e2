"""Data layer exports for the rsi-sweep project."""

from .contracts import SymbolMetadataError, SymbolSpec, precision_from_step, round_quantity
from .ingest import MarketData, load_market_data
from .schemas import CANDLE_COLUMNS, Candle, CandleFrame, normalize_candles
from .stores import ParquetCandleStore

__all__ = [
    "CANDLE_COLUMNS",
    "Candle",
    "CandleFrame",
    "MarketData",
    "ParquetCandleStore",
    "SymbolMetadataError",
    "SymbolSpec",
    "load_market_data",
    "normalize_candles",
    "precision_from_step",
    "round_quantity",
]
