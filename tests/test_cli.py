"""Tests for the CryptoSignals command line interface."""

import json
import math

import pytest
from click.testing import CliRunner

from cryptosignals.cli.main import cli
from cryptosignals.cli.scan import scan_symbol
from cryptosignals.config import get_data_store, load_config
from cryptosignals.errors import KlineFetchError
from cryptosignals.models import Candle
from cryptosignals.signals import LIVE_KEYS

START = 1_700_000_000_000
HOUR = 60 * 60 * 1000


def market_candles(n: int = 300) -> list[Candle]:
    closes = [100 + 15 * math.sin(i / 9) + 4 * math.sin(i / 2.5) for i in range(n)]
    return [
        Candle(open_time=START + i * HOUR, open=c, high=c + 1, low=c - 1, close=c, volume=10.0)
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def config_path(tmp_path):
    """Config file pointing the database into a temporary directory."""
    path = tmp_path / "config.toml"
    path.write_text(
        '[signals]\n'
        'symbols = ["BTCUSDT"]\n'
        'intervals = ["1h"]\n'
        '\n'
        '[database]\n'
        f'path = "{(tmp_path / "signals.db").as_posix()}"\n'
    )
    return path


@pytest.fixture
def cached_store(config_path):
    """Data store with a cached BTCUSDT 1h series."""
    store = get_data_store(load_config(config_path))
    store.save_candles("BTCUSDT", "1h", market_candles())
    return store


class TestMainGroup:
    """Top-level group behaviour."""

    def test_lists_lazy_commands(self, config_path):
        result = CliRunner().invoke(cli, ["--config", str(config_path), "--help"])

        assert result.exit_code == 0
        for command in ("fetch", "scan", "signals", "live"):
            assert command in result.output

    def test_bad_config_exits(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("not = [valid")

        result = CliRunner().invoke(cli, ["--config", str(path), "signals"])

        assert result.exit_code == 1


class TestScan:
    """Scanning cached series."""

    def test_scan_symbol_stores_signals(self, config_path, cached_store):
        config = load_config(config_path)

        signals = scan_symbol("BTCUSDT", "1h", config, store=cached_store, cached=True)

        stored = cached_store.get_signals(symbol="BTCUSDT", interval="1h", limit=1000)
        assert signals
        assert len(stored) == len(signals)

    def test_rescan_does_not_duplicate(self, config_path, cached_store):
        config = load_config(config_path)

        first = scan_symbol("BTCUSDT", "1h", config, store=cached_store, cached=True)
        scan_symbol("BTCUSDT", "1h", config, store=cached_store, cached=True)

        assert len(cached_store.get_signals(limit=1000)) == len(first)

    def test_scan_command(self, config_path, cached_store):
        result = CliRunner().invoke(cli, ["--config", str(config_path), "scan", "--cached"])

        assert result.exit_code == 0
        assert cached_store.get_signals(symbol="BTCUSDT", interval="1h")

    def test_fetch_failure_exits(self, config_path, monkeypatch):
        def fail(self, symbol, interval="1h", limit=500):
            raise KlineFetchError(f"Failed to fetch {interval} klines for {symbol}")

        monkeypatch.setattr("cryptosignals.data.binance.BinanceKlineClient.get_klines", fail)

        result = CliRunner().invoke(cli, ["--config", str(config_path), "scan", "BTCUSDT"])

        assert result.exit_code == 1


class TestFetch:
    """Fetching candles."""

    def test_fetch_caches_candles(self, config_path, monkeypatch):
        candles = market_candles(60)
        monkeypatch.setattr(
            "cryptosignals.data.binance.BinanceKlineClient.get_klines",
            lambda self, symbol, interval="1h", limit=500: candles,
        )

        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "fetch", "btcusdt", "-i", "4h"]
        )

        assert result.exit_code == 0
        store = get_data_store(load_config(config_path))
        assert store.get_candles("BTCUSDT", "4h") == candles


class TestSignalsAndLive:
    """Signal log and live view commands."""

    def test_empty_signal_log(self, config_path):
        result = CliRunner().invoke(cli, ["--config", str(config_path), "signals"])

        assert result.exit_code == 0
        assert "No matching signals" in result.output

    def test_signal_log_after_scan(self, config_path, cached_store):
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config_path), "scan", "--cached"])

        result = runner.invoke(cli, ["--config", str(config_path), "signals", "--by-interval"])

        assert result.exit_code == 0
        assert "Recent 1h signals" in result.output

    def test_live_json(self, config_path, cached_store):
        result = CliRunner().invoke(
            cli,
            ["--config", str(config_path), "live", "BTCUSDT", "-i", "1h",
             "--cached", "--json", "-a", "rsi", "-a", "cluster"],
        )

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert list(payload) == ["rsi", "cluster"]
        for entry in payload.values():
            assert set(entry) == {"signal", "triggered_at", "pct_change"}

    def test_live_all(self, config_path, cached_store):
        result = CliRunner().invoke(
            cli,
            ["--config", str(config_path), "live", "BTCUSDT", "-i", "1h",
             "--cached", "--json", "--all"],
        )

        assert result.exit_code == 0
        assert list(json.loads(result.output)) == list(LIVE_KEYS)
