"""Main CLI entry point for TradeLedger.

This module provides the main click group and lazy loading
of command modules.
"""

import logging

import click
from rich.console import Console

console = Console()


class LazyGroup(click.Group):
    """A click Group that imports command modules on first use."""

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        base = super().list_commands(ctx)
        return sorted(set(base) | set(self._lazy_subcommands))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name in self.commands:
            return self.commands[cmd_name]
        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)
        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Import the module for cmd_name and register its command."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = next(
            (
                attr
                for attr in vars(module).values()
                if isinstance(attr, click.Command) and attr.name == cmd_name
            ),
            None,
        )
        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    "import": "tradeledger.cli.ingest",
    "trades": "tradeledger.cli.ledger",
    "session": "tradeledger.cli.ledger",
    "pnl": "tradeledger.cli.portfolio",
    "config": "tradeledger.cli.settings",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="tradeledger")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """TradeLedger - turn raw trade exports into a FIFO PnL ledger.

    Paste or pipe trade history from any supported export, keep a
    deduplicated ledger per session, and report realized and
    unrealized PnL.

    \b
    Quick Start:
      tradeledger import trades.txt   # Parse and merge an export
      tradeledger trades --side Buy   # Browse the ledger
      tradeledger pnl --live          # PnL with live prices
    """
    from tradeledger.config import load_config

    ctx.ensure_object(dict)
    config = load_config()
    ctx.obj["config"] = config
    configure_logging("DEBUG" if verbose else config["logging"]["level"])


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
