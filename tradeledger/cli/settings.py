"""Configuration commands for TradeLedger CLI."""

import click
import toml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tradeledger.cli._common import get_data_store
from tradeledger.config import create_template_config, get_config_path, get_db_path

console = Console()


@click.group()
def config() -> None:
    """Manage the TradeLedger configuration file."""


@config.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
def config_init(force: bool) -> None:
    """Write a template config.toml."""
    path = get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow] (use --force to overwrite)")
        return
    written = create_template_config(path)
    console.print(f"[green]✓[/green] Wrote template config to {written}")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration and ledger database status."""
    settings = ctx.obj["config"]
    console.print(Panel(
        toml.dumps(settings),
        title=f"[bold]{get_config_path()}[/bold]",
        border_style="cyan",
    ))

    stats = get_data_store(settings).get_stats()
    table = Table(title="Ledger Database", show_header=True, header_style="bold cyan")
    table.add_column("Table", style="bold")
    table.add_column("Rows", justify="right")
    for name, count in stats.items():
        table.add_row(name, str(count))
    console.print(table)
    console.print(f"[dim]{get_db_path(settings)}[/dim]")
