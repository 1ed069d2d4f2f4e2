"""Core package for the RSI parameter sweep and backtesting stack."""

from importlib.metadata import version

__all__ = ["__version__"]

try:
    __version__ = version("rsi-sweep")
except Exception:  # pragma: no cover - package not installed in dev mode yet.
    __version__ = "0.0.0"
