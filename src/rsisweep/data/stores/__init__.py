"""Storage backends for cached market data."""

from .local import ParquetCandleStore

__all__ = ["ParquetCandleStore"]
