"""Data commands for CryptoSignals CLI.

Handles fetching, caching and displaying candle data.
"""

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cryptosignals.config import SUPPORTED_INTERVALS, get_data_store
from cryptosignals.data.binance import BinanceKlineClient
from cryptosignals.errors import KlineFetchError
from cryptosignals.models import Candle

console = Console()


def load_candles(
    symbol: str,
    interval: str,
    config: dict,
    limit: int,
    cached: bool = False,
    client: BinanceKlineClient | None = None,
    store=None,
) -> list[Candle]:
    """Get candles from the exchange (caching them) or only from the cache.

    Args:
        symbol: Trading pair.
        interval: Candle interval.
        config: Loaded configuration.
        limit: Number of most recent candles.
        cached: Read from the local cache without touching the network.
        client: Optional kline client (built from config if omitted).
        store: Optional data store (opened from config if omitted).

    Returns:
        Candles in ascending order.

    Raises:
        KlineFetchError: If fetching from the exchange fails.
    """
    store = store or get_data_store(config)

    if cached:
        return store.get_candles(symbol, interval, limit=limit)

    client = client or BinanceKlineClient.from_config(config)
    candles = client.get_klines(symbol, interval, limit=limit)
    if candles:
        store.save_candles(symbol, interval, candles)
    return candles


def error_panel(message: str, error: Exception) -> Panel:
    """Red panel used by every command for collaborator failures."""
    return Panel(
        f"[red]{message}[/red]\n\n{error}",
        title="[bold red]Error[/bold red]",
        border_style="red",
    )


@click.command()
@click.argument("symbol")
@click.option(
    "-i", "--interval",
    default="1h",
    type=click.Choice(SUPPORTED_INTERVALS),
    help="Candle interval (default: 1h)",
)
@click.option(
    "-l", "--limit",
    default=500,
    type=int,
    help="Number of candles to fetch (default: 500)",
)
@click.pass_context
def fetch(ctx: click.Context, symbol: str, interval: str, limit: int) -> None:
    """Fetch, cache and display candles for a trading pair.

    SYMBOL is the Binance trading pair (e.g., BTCUSDT, ETHUSDT).

    \b
    Examples:
      cryptosignals fetch BTCUSDT                 # Last 500 hourly candles
      cryptosignals fetch ETHUSDT -i 15m -l 1000  # 1000 fifteen-minute candles
    """
    config = ctx.obj["config"]
    symbol = symbol.upper()

    console.print(f"[dim]Fetching {interval} candles for {symbol}...[/dim]")

    try:
        candles = load_candles(symbol, interval, config, limit)
    except KlineFetchError as e:
        console.print(error_panel("Failed to fetch candles:", e))
        raise SystemExit(1)

    if not candles:
        console.print(Panel(
            f"[yellow]No data available for {symbol}[/yellow]\n\n"
            "[dim]The symbol may be invalid or not listed on Binance.[/dim]",
            title="[bold yellow]No Data[/bold yellow]",
            border_style="yellow",
        ))
        return

    table = Table(
        title=f"{symbol} - {interval} ({len(candles)} candles)",
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("Open Time (UTC)", style="dim")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right", style="green")
    table.add_column("Low", justify="right", style="red")
    table.add_column("Close", justify="right")
    table.add_column("Volume", justify="right", style="dim")
    table.add_column("Change", justify="right")

    # Show last 20 candles
    start = max(0, len(candles) - 20)
    for i in range(start, len(candles)):
        candle = candles[i]
        if i > 0 and candles[i - 1].close > 0:
            prev_close = candles[i - 1].close
            change = candle.close - prev_close
            change_str = f"{change:+.4f} ({change / prev_close * 100:+.2f}%)"
            change_style = "green" if change >= 0 else "red"
        else:
            change_str = "-"
            change_style = "dim"

        table.add_row(
            candle.opened_at.strftime("%Y-%m-%d %H:%M"),
            f"{candle.open:.4f}",
            f"{candle.high:.4f}",
            f"{candle.low:.4f}",
            f"{candle.close:.4f}",
            f"{candle.volume:,.2f}",
            f"[{change_style}]{change_str}[/{change_style}]",
        )

    console.print(table)

    if len(candles) > 20:
        console.print(f"[dim]Showing last 20 of {len(candles)} candles[/dim]")
