"""Candle ingestion: fetch from the exchange once, optionally via the Parquet cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import AppSettings, SweepConfig
from .contracts import SymbolSpec
from .providers.base import BaseCandleProvider, CandleRequest
from .providers.binance import BinanceFuturesClient, BinanceFuturesProvider
from .schemas import Candle, normalize_candles
from .stores.local import ParquetCandleStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MarketData:
    """Candles and trading rules for one sweep, fully loaded before any simulation."""

    symbol: SymbolSpec
    candles: tuple[Candle, ...]


def build_provider(settings: AppSettings) -> BinanceFuturesProvider:
    client = BinanceFuturesClient(
        base_url=settings.binance_base_url,
        timeout=settings.request_timeout,
        max_attempts=settings.request_attempts,
        retry_delay=settings.retry_delay,
    )
    return BinanceFuturesProvider(client)


def load_market_data(
    config: SweepConfig,
    settings: AppSettings | None = None,
    provider: BaseCandleProvider | None = None,
    store: ParquetCandleStore | None = None,
) -> MarketData:
    """Fetch candles and the quantity step for ``config.symbol``.

    Parameters
    ----------
    config:
        Sweep configuration naming the symbol, interval and history window.
    settings:
        Optional application settings used to build the default provider.
    provider:
        Optional provider instance. When omitted a Binance provider is created and closed after use.
    store:
        Optional candle cache. Cached candles are reused; with ``extend_to_now`` only
        candles after the cached tail are fetched, and the merged history is written back.

    Raises
    ------
    BinanceAPIError
        When the exchange keeps failing after the configured retries.
    SymbolMetadataError
        When the symbol has no usable ``LOT_SIZE`` filter.
    """

    settings = settings or AppSettings()
    created_provider = provider is None
    provider = provider or build_provider(settings)
    symbol = config.symbol_upper

    try:
        quantity_step = provider.fetch_quantity_step(symbol)
        cached: tuple[Candle, ...] = ()
        if store is not None and store.exists(symbol, config.interval, config.start_time):
            cached = store.load(symbol, config.interval, config.start_time)
            logger.info("Loaded %d cached candles for %s", len(cached), symbol)

        if cached and not config.extend_to_now:
            candles = cached
        else:
            # Only candles after the cached tail are requested.
            start_time = cached[-1].close_time + 1 if cached else config.start_time
            request = CandleRequest(
                symbol=symbol,
                interval=config.interval,
                start_time=start_time,
                limit=config.page_limit,
                extend_to_now=config.extend_to_now,
            )
            fetched = tuple(provider.fetch_candles(request))
            candles = normalize_candles(cached + fetched) if cached else fetched
            if store is not None and fetched:
                store.save(symbol, config.interval, config.start_time, candles)
    finally:
        if created_provider:
            provider.close()  # type: ignore[attr-defined]

    return MarketData(symbol=SymbolSpec(symbol=symbol, quantity_step=quantity_step), candles=candles)
