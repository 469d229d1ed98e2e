"""Tests for the Binance kline client.

The HTTP session is mocked; no network access is needed.
"""

import math
from unittest.mock import MagicMock, patch

import pytest
import requests

from cryptosignals.data.binance import BinanceKlineClient, parse_kline, parse_klines
from cryptosignals.errors import KlineFetchError

START = 1_700_000_000_000
MINUTE = 60_000


def kline_row(open_time: int, close: str = "101.5") -> list:
    return [
        open_time, "100.0", "102.0", "99.0", close, "12.5",
        open_time + MINUTE - 1, "1265.0", 42, "6.0", "606.0", "0",
    ]


def mock_session(*batches) -> MagicMock:
    session = MagicMock()
    responses = []
    for batch in batches:
        response = MagicMock()
        response.json.return_value = batch
        responses.append(response)
    session.get.side_effect = responses
    return session


class TestParsing:
    """Kline row parsing."""

    def test_parse_kline(self):
        candle = parse_kline(kline_row(START))

        assert candle.open_time == START
        assert (candle.open, candle.high, candle.low, candle.close) == (100.0, 102.0, 99.0, 101.5)
        assert candle.volume == 12.5

    def test_malformed_price_becomes_nan(self):
        candle = parse_kline(kline_row(START, close="n/a"))

        assert math.isnan(candle.close)
        assert candle.high == 102.0

    def test_short_row_is_rejected(self):
        with pytest.raises(TypeError):
            parse_kline([START, "1", "2"])

    def test_dedupe_and_sort(self):
        rows = [kline_row(START + MINUTE), kline_row(START), kline_row(START + MINUTE, "7")]

        candles = parse_klines(rows)

        assert [c.open_time for c in candles] == [START, START + MINUTE]
        assert candles[1].close == 7.0


class TestGetKlines:
    """Batched history fetching."""

    @patch("cryptosignals.data.binance.time.sleep")
    def test_single_batch(self, sleep):
        rows = [kline_row(START + i * MINUTE) for i in range(10)]
        session = mock_session(rows)
        client = BinanceKlineClient(session=session)

        candles = client.get_klines("BTCUSDT", "1m", limit=10)

        assert len(candles) == 10
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"symbol": "BTCUSDT", "interval": "1m", "limit": 10}
        sleep.assert_not_called()

    @patch("cryptosignals.data.binance.time.sleep")
    def test_walks_backwards_in_batches(self, sleep):
        newest = [kline_row(START + i * MINUTE) for i in range(200, 700)]
        oldest = [kline_row(START + i * MINUTE) for i in range(0, 200)]
        session = mock_session(newest, oldest)
        client = BinanceKlineClient(session=session, batch_size=500, request_delay=0.7)

        candles = client.get_klines("ETHUSDT", "1m", limit=700)

        assert [c.open_time for c in candles] == [START + i * MINUTE for i in range(700)]
        second_params = session.get.call_args_list[1].kwargs["params"]
        assert second_params["limit"] == 200
        assert second_params["endTime"] == START + 200 * MINUTE - 1
        sleep.assert_called_once_with(0.7)

    @patch("cryptosignals.data.binance.time.sleep")
    def test_stops_when_history_runs_out(self, sleep):
        session = mock_session([kline_row(START + i * MINUTE) for i in range(30)])
        client = BinanceKlineClient(session=session, batch_size=500)

        candles = client.get_klines("BTCUSDT", "1h", limit=1000)

        assert len(candles) == 30
        assert session.get.call_count == 1

    def test_empty_response(self):
        client = BinanceKlineClient(session=mock_session([]))

        assert client.get_klines("NOPEUSDT", "1h", limit=10) == []

    def test_http_error_is_wrapped(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("400 Bad Request")
        client = BinanceKlineClient(session=session)

        with pytest.raises(KlineFetchError, match="BTCUSDT"):
            client.get_klines("BTCUSDT", "1h", limit=10)

    def test_connection_error_is_wrapped(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")
        client = BinanceKlineClient(session=session)

        with pytest.raises(KlineFetchError):
            client.get_klines("BTCUSDT", "1h", limit=10)

    def test_from_config(self):
        config = {"binance": {"base_url": "https://example.test/api/", "batch_size": 100}}

        client = BinanceKlineClient.from_config(config)

        assert client.base_url == "https://example.test/api"
        assert client.batch_size == 100
        assert client.request_delay == 0.7
