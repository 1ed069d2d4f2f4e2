"""Provider implementations for historical market data."""

from .base import BaseCandleProvider, CandleRequest
from .binance import BinanceAPIError, BinanceFuturesClient, BinanceFuturesProvider

__all__ = [
    "BaseCandleProvider",
    "BinanceAPIError",
    "BinanceFuturesClient",
    "BinanceFuturesProvider",
    "CandleRequest",
]
