"""Scan command for CryptoSignals CLI.

Runs every detector over the configured pairs and intervals and
refreshes the stored signal log.
"""

import logging
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from cryptosignals.cli.data import error_panel, load_candles
from cryptosignals.config import SUPPORTED_INTERVALS, get_data_store
from cryptosignals.data.binance import BinanceKlineClient
from cryptosignals.errors import KlineFetchError
from cryptosignals.models import Signal, SignalType
from cryptosignals.signals import detect_all_signals

console = Console()
logger = logging.getLogger(__name__)


def scan_symbol(
    symbol: str,
    interval: str,
    config: dict,
    client: Optional[BinanceKlineClient] = None,
    store=None,
    cached: bool = False,
) -> list[Signal]:
    """Detect signals on one series and replace its recent signal log.

    Args:
        symbol: Trading pair.
        interval: Candle interval.
        config: Loaded configuration.
        client: Optional kline client.
        store: Optional data store.
        cached: Use cached candles instead of fetching.

    Returns:
        The detected signals (clusters included).
    """
    store = store or get_data_store(config)
    candles = load_candles(
        symbol, interval, config, config["signals"]["limit"],
        cached=cached, client=client, store=store,
    )

    signals = detect_all_signals(candles)
    if not candles:
        logger.warning("No candles for %s %s", symbol, interval)
        return signals

    store.replace_recent_signals(symbol, interval, signals)
    return signals


@click.command()
@click.argument("symbols", nargs=-1)
@click.option(
    "-i", "--interval",
    "intervals",
    multiple=True,
    type=click.Choice(SUPPORTED_INTERVALS),
    help="Interval to scan (repeatable; default: intervals from config)",
)
@click.option(
    "--cached",
    is_flag=True,
    help="Use cached candles instead of fetching from Binance",
)
@click.pass_context
def scan(ctx: click.Context, symbols: tuple, intervals: tuple, cached: bool) -> None:
    """Detect signals and refresh the stored signal log.

    SYMBOLS default to the pairs listed in the config file.

    \b
    Examples:
      cryptosignals scan                       # All configured pairs
      cryptosignals scan BTCUSDT -i 1h -i 4h   # One pair, two intervals
      cryptosignals scan ETHUSDT --cached      # Re-run on cached candles
    """
    config = ctx.obj["config"]
    symbols = [s.upper() for s in symbols] or config["signals"]["symbols"]
    intervals = list(intervals) or config["signals"]["intervals"]

    store = get_data_store(config)
    client = None if cached else BinanceKlineClient.from_config(config)

    table = Table(
        title="Signal Scan",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Interval")
    table.add_column("Signals", justify="right")
    table.add_column("Buy", justify="right", style="green")
    table.add_column("Sell", justify="right", style="red")
    table.add_column("Clusters", justify="right", style="magenta")

    failures = 0
    for symbol in symbols:
        for interval in intervals:
            console.print(f"[dim]Scanning {symbol} {interval}...[/dim]")
            try:
                signals = scan_symbol(
                    symbol, interval, config, client=client, store=store, cached=cached
                )
            except KlineFetchError as e:
                failures += 1
                console.print(error_panel(f"Failed to scan {symbol} {interval}:", e))
                continue

            buys = sum(1 for s in signals if s.type == SignalType.BUY)
            clusters = sum(1 for s in signals if s.indicator == "cluster")
            table.add_row(
                symbol,
                interval,
                str(len(signals)),
                str(buys),
                str(len(signals) - buys),
                str(clusters),
            )

    console.print(table)

    if failures:
        raise SystemExit(1)
