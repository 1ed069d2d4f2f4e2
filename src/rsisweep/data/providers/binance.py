"""Binance USD-M futures provider for historical klines and lot-size metadata."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

import requests

from ..contracts import SymbolMetadataError
from ..schemas import Candle, normalize_candles
from .base import BaseCandleProvider, CandleRequest

logger = logging.getLogger(__name__)

BINANCE_FUTURES_BASE_URL = "https://fapi.binance.com"
KLINES_PATH = "/fapi/v1/klines"
EXCHANGE_INFO_PATH = "/fapi/v1/exchangeInfo"


class BinanceAPIError(RuntimeError):
    """Raised when a Binance request keeps failing after every retry."""


class BinanceFuturesClient:
    """Thin wrapper around the public futures REST API with fixed-delay retries.

    Successful responses are memoized per ``(path, params)`` for the lifetime of
    the client, so repeated identical requests do not hit the network.
    """

    def __init__(
            self,
            *,
            session: Optional[requests.Session] = None,
            base_url: str = BINANCE_FUTURES_BASE_URL,
            timeout: float = 30,
            max_attempts: int = 3,
            retry_delay: float = 1.0,
            sleeper: Callable[[float], None] | None = None,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleeper or time.sleep
        self._responses: dict[str, Any] = {}

    def close(self) -> None:
        self.session.close()

    def _request(self, url: str, params: dict) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        clean = {key: value for key, value in (params or {}).items() if value is not None}
        key = f"{path}/{json.dumps(clean, sort_keys=True)}"
        if key in self._responses:
            return self._responses[key]

        url = f"{self.base_url}{path}"
        for attempt in range(1, self.max_attempts + 1):
            try:
                payload = self._request(url, clean)
            except (requests.RequestException, ValueError) as exc:
                if attempt == self.max_attempts:
                    raise BinanceAPIError(
                        f"Binance request failed after {attempt} attempts: {url}"
                    ) from exc
                logger.warning(
                    "Binance request to %s failed (attempt %d/%d): %s",
                    path, attempt, self.max_attempts, exc,
                )
                self._sleep(self.retry_delay)
                continue
            self._responses[key] = payload
            return payload
        raise AssertionError("unreachable")  # pragma: no cover


class BinanceFuturesProvider(BaseCandleProvider):
    """Fetch futures klines page by page and resolve symbol quantity steps."""

    def __init__(
            self,
            client: BinanceFuturesClient | None = None,
            *,
            now: Callable[[], int] | None = None,
    ) -> None:
        self._client = client or BinanceFuturesClient()
        self._now = now or (lambda: int(time.time() * 1000))

    def close(self) -> None:
        self._client.close()

    def fetch_candles(self, request: CandleRequest) -> tuple[Candle, ...]:
        end_time = request.end_time if request.end_time is not None else self._now()
        start_time = request.start_time
        candles: list[Candle] = []
        while True:
            rows = self._client.get(
                KLINES_PATH,
                {
                    "symbol": request.symbol.upper(),
                    "interval": request.interval,
                    "limit": request.limit,
                    "startTime": start_time,
                },
            )
            candles.extend(Candle.from_kline(row) for row in rows)
            if not request.extend_to_now or not rows:
                break
            start_time = int(rows[-1][6]) + 1
            if start_time >= end_time:
                break
        logger.info(
            "Fetched %d %s %s candles", len(candles), request.symbol.upper(), request.interval)
        return normalize_candles(candles)

    def fetch_quantity_step(self, symbol: str) -> str:
        payload = self._client.get(EXCHANGE_INFO_PATH, {})
        target = symbol.upper()
        for item in payload.get("symbols", []) or []:
            if item.get("symbol") != target:
                continue
            for rule in item.get("filters", []) or []:
                if rule.get("filterType") == "LOT_SIZE" and rule.get("stepSize"):
                    return str(rule["stepSize"])
            raise SymbolMetadataError(f"No LOT_SIZE filter published for {target}")
        raise SymbolMetadataError(f"Symbol {target} not found in exchange info")


__all__ = [
    "BINANCE_FUTURES_BASE_URL",
    "BinanceAPIError",
    "BinanceFuturesClient",
    "BinanceFuturesProvider",
]
