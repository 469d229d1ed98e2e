"""Main CLI entry point for CryptoSignals.

This module provides the main click group and lazy loading
for heavy imports to improve startup time.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from cryptosignals.config import load_config
from cryptosignals.errors import ConfigError

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when they are actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        attr = getattr(module, cmd_name, None)
        if not isinstance(attr, click.Command):
            raise click.ClickException(
                f"Could not find command '{cmd_name}' in {module_path}"
            )

        self.add_command(attr)
        return attr


LAZY_SUBCOMMANDS = {
    "fetch": "cryptosignals.cli.data",
    "scan": "cryptosignals.cli.scan",
    "signals": "cryptosignals.cli.signals",
    "live": "cryptosignals.cli.signals",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def setup_logging(level: str) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="cryptosignals")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.toml (default: ~/.config/cryptosignals/config.toml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """CryptoSignals - technical-analysis signals for crypto pairs.

    Detects WaveTrend, RSI, moving-average and breakout signals on
    Binance candles, merges them into cluster signals and keeps a
    signal log in SQLite.

    \b
    Quick Start:
      cryptosignals fetch BTCUSDT -i 1h     # Download and cache candles
      cryptosignals scan BTCUSDT -i 1h      # Detect and store signals
      cryptosignals signals -s BTCUSDT      # Show the signal log
      cryptosignals live BTCUSDT -i 15m     # Current live signals
    """
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(Panel(
            f"[red]{e}[/red]",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    setup_logging("DEBUG" if verbose else config["logging"]["level"])
    ctx.obj["config"] = config


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
