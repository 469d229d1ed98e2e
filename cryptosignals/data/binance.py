"""Binance public REST client for kline (candle) data.

Only unauthenticated market-data endpoints are used. Long histories are
fetched in batches walking backwards from the newest candle, with a pause
between requests to stay under the exchange's rate limits.
"""

import logging
import time
from typing import Optional

import requests

from cryptosignals.errors import KlineFetchError
from cryptosignals.models import Candle

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.binance.com/api/v3"
DEFAULT_BATCH_SIZE = 500
DEFAULT_REQUEST_DELAY = 0.7


def parse_kline(row) -> Candle:
    """Convert one Binance kline row into a ``Candle``.

    Binance rows are ``[openTime, open, high, low, close, volume, closeTime,
    ...]`` with prices as strings. Unparsable prices become NaN.
    """
    return Candle.from_kline(row)


def parse_klines(rows: list) -> list[Candle]:
    """Convert kline rows, dropping duplicate open times and sorting ascending."""
    by_open_time: dict[int, Candle] = {}
    for row in rows:
        candle = parse_kline(row)
        by_open_time[candle.open_time] = candle
    return [by_open_time[t] for t in sorted(by_open_time)]


class BinanceKlineClient:
    """Fetches candle series from the Binance spot API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        batch_size: int = DEFAULT_BATCH_SIZE,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            base_url: REST API root.
            batch_size: Klines per request (Binance allows up to 1000).
            request_delay: Seconds to sleep between batch requests.
            timeout: Per-request timeout in seconds.
            session: Optional pre-configured ``requests.Session``.
        """
        self.base_url = base_url.rstrip("/")
        self.batch_size = batch_size
        self.request_delay = request_delay
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: dict) -> "BinanceKlineClient":
        """Build a client from the ``[binance]`` config section."""
        section = config.get("binance", {})
        return cls(
            base_url=section.get("base_url", DEFAULT_BASE_URL),
            batch_size=int(section.get("batch_size", DEFAULT_BATCH_SIZE)),
            request_delay=float(section.get("request_delay", DEFAULT_REQUEST_DELAY)),
            timeout=float(section.get("timeout", 10.0)),
        )

    def _get_batch(
        self, symbol: str, interval: str, limit: int, end_time: Optional[int]
    ) -> list:
        params = {"symbol": symbol, "interval": interval, "limit": limit}
        if end_time is not None:
            params["endTime"] = end_time

        try:
            response = self.session.get(
                f"{self.base_url}/klines", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise KlineFetchError(
                f"Failed to fetch {interval} klines for {symbol}: {e}"
            ) from e
        except ValueError as e:
            raise KlineFetchError(f"Invalid kline payload for {symbol}: {e}") from e

    def get_klines(self, symbol: str, interval: str = "1h", limit: int = 500) -> list[Candle]:
        """Fetch up to *limit* most recent candles.

        Args:
            symbol: Trading pair (e.g., 'BTCUSDT').
            interval: Kline interval (e.g., '1h').
            limit: Total number of candles wanted.

        Returns:
            Candles in ascending open-time order.

        Raises:
            KlineFetchError: On network errors, HTTP errors or bad payloads.
        """
        rows: list = []
        end_time: Optional[int] = None

        while len(rows) < limit:
            batch_limit = min(self.batch_size, limit - len(rows))
            batch = self._get_batch(symbol, interval, batch_limit, end_time)
            if not batch:
                break

            # prepend to keep chronological order
            rows = batch + rows
            end_time = int(batch[0][0]) - 1
            logger.debug("Fetched %d %s %s klines", len(batch), symbol, interval)

            if len(batch) < batch_limit or len(rows) >= limit:
                break
            time.sleep(self.request_delay)

        candles = parse_klines(rows)
        logger.info("Fetched %d %s %s candles", len(candles), symbol, interval)
        return candles
