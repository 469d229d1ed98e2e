"""Signal commands for CryptoSignals CLI.

Shows the stored signal log and the live per-detector view.
"""

import json
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cryptosignals.cli.data import error_panel, load_candles
from cryptosignals.config import SUPPORTED_INTERVALS, get_data_store
from cryptosignals.errors import KlineFetchError
from cryptosignals.signals import LIVE_KEYS, get_live_signals, select_active

console = Console()

STRENGTH_STYLES = {"weak": "dim", "medium": "yellow", "strong": "bold magenta"}


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _type_cell(signal_type: str) -> str:
    style = "green" if signal_type == "buy" else "red"
    return f"[{style}]{signal_type.upper()}[/{style}]"


def _signal_table(title: str, records: list[dict]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Symbol", style="bold")
    table.add_column("Interval")
    table.add_column("Type")
    table.add_column("Indicator")
    table.add_column("Strength")
    table.add_column("Price", justify="right")

    for record in records:
        signal = record["signal"]
        style = STRENGTH_STYLES[signal.strength.value]
        indicator = signal.indicator
        if signal.indicator == "cluster" and signal.meta:
            indicator = f"cluster ({signal.meta.get('count')})"
        table.add_row(
            _format_time(signal.timestamp),
            record["symbol"],
            record["interval"],
            _type_cell(signal.type.value),
            indicator,
            f"[{style}]{signal.strength.value}[/{style}]",
            f"{signal.price:.4f}",
        )
    return table


@click.command()
@click.option("-s", "--symbol", help="Filter by trading pair")
@click.option(
    "-i", "--interval",
    type=click.Choice(SUPPORTED_INTERVALS),
    help="Filter by interval",
)
@click.option(
    "-n", "--limit",
    default=20,
    type=int,
    help="Number of signals to show (default: 20)",
)
@click.option(
    "--by-interval",
    is_flag=True,
    help="Show the newest signals of every interval",
)
@click.pass_context
def signals(
    ctx: click.Context,
    symbol: str | None,
    interval: str | None,
    limit: int,
    by_interval: bool,
) -> None:
    """Show stored signals, newest first.

    \b
    Examples:
      cryptosignals signals                   # Latest 20 signals
      cryptosignals signals -s BTCUSDT -i 1h  # One series
      cryptosignals signals --by-interval -n 5
    """
    store = get_data_store(ctx.obj["config"])

    if by_interval:
        recent = store.get_recent_signals(limit=limit)
        if not recent:
            console.print("[yellow]No signals stored yet. Run 'cryptosignals scan' first.[/yellow]")
            return
        for name, records in recent.items():
            console.print(_signal_table(f"Recent {name} signals", records))
        return

    records = store.get_signals(
        symbol=symbol.upper() if symbol else None,
        interval=interval,
        limit=limit,
    )
    if not records:
        console.print("[yellow]No matching signals.[/yellow]")
        return

    console.print(_signal_table(f"Signals ({len(records)})", records))


@click.command()
@click.argument("symbol")
@click.option(
    "-i", "--interval",
    default="15m",
    type=click.Choice(SUPPORTED_INTERVALS),
    help="Candle interval (default: 15m)",
)
@click.option(
    "-a", "--active",
    "active",
    multiple=True,
    type=click.Choice(LIVE_KEYS),
    help="Entry to show (repeatable; default: active list from config)",
)
@click.option("--all", "show_all", is_flag=True, help="Show every live entry")
@click.option("--json", "as_json", is_flag=True, help="Print the entries as JSON")
@click.option("--cached", is_flag=True, help="Use cached candles")
@click.pass_context
def live(
    ctx: click.Context,
    symbol: str,
    interval: str,
    active: tuple,
    show_all: bool,
    as_json: bool,
    cached: bool,
) -> None:
    """Show the most recent live signal of each detector.

    SYMBOL is the Binance trading pair (e.g., BTCUSDT).

    \b
    Examples:
      cryptosignals live BTCUSDT                # Configured entries, 15m
      cryptosignals live ETHUSDT -i 1h --all    # Every entry
      cryptosignals live BTCUSDT -a rsi -a wt_rsi --json
    """
    config = ctx.obj["config"]
    symbol = symbol.upper()

    try:
        candles = load_candles(
            symbol, interval, config, config["signals"]["limit"], cached=cached
        )
    except KlineFetchError as e:
        console.print(error_panel("Failed to fetch candles:", e))
        raise SystemExit(1)

    if show_all:
        wanted = None
    else:
        wanted = list(active) or config["signals"]["active"]
    entries = select_active(get_live_signals(candles), wanted)

    if as_json:
        click.echo(json.dumps({key: entry.to_display() for key, entry in entries.items()}))
        return

    if not candles:
        console.print(Panel(
            f"[yellow]No candles available for {symbol} {interval}[/yellow]",
            title="[bold yellow]No Data[/bold yellow]",
            border_style="yellow",
        ))
        return

    table = Table(
        title=f"Live signals - {symbol} {interval}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Entry", style="bold")
    table.add_column("Signal")
    table.add_column("Triggered (UTC)", style="dim")
    table.add_column("Change", justify="right")

    for key, entry in entries.items():
        payload = entry.to_display()
        if payload["signal"] is None:
            table.add_row(key, "[dim]-[/dim]", "-", "-")
            continue

        pct = payload["pct_change"]
        if pct is None:
            change = "-"
        else:
            style = "green" if pct >= 0 else "red"
            change = f"[{style}]{pct:+.2f}%[/{style}]"
        table.add_row(
            key,
            _type_cell(payload["signal"]),
            _format_time(payload["triggered_at"]),
            change,
        )

    console.print(table)
