"""Import command for TradeLedger CLI.

Parses a raw trade export, reports rejected lines and merges the
result into the session ledger without duplicating earlier imports.
"""

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tradeledger.cli._common import (
    format_amount,
    get_data_store,
    get_user_id,
    resolve_session,
)

console = Console()

# Rejected lines shown before the list is truncated
MAX_ERRORS_SHOWN = 20


def _print_errors(errors: list[str]) -> None:
    shown = "\n".join(f"[red]•[/red] {error}" for error in errors[:MAX_ERRORS_SHOWN])
    if len(errors) > MAX_ERRORS_SHOWN:
        shown += f"\n[dim]... and {len(errors) - MAX_ERRORS_SHOWN} more[/dim]"
    console.print(Panel(
        shown,
        title=f"[bold yellow]{len(errors)} line(s) not recognized[/bold yellow]",
        border_style="yellow",
    ))


@click.command("import")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--session", "session_id", default=None, help="Session ID to import into.")
@click.option("--dry-run", is_flag=True, default=False, help="Parse and diff without saving.")
@click.pass_context
def import_trades(ctx: click.Context, source, session_id: str | None, dry_run: bool) -> None:
    """Parse a trade export and merge it into the ledger.

    SOURCE is a text file, or - to read from stdin. The export format is
    detected automatically.

    \b
    Examples:
      tradeledger import history.txt
      pbpaste | tradeledger import - --session 3f2a...
    """
    from tradeledger.ledger import diff_trades, merge_trades
    from tradeledger.parsing import parse_trades

    config = ctx.obj["config"]
    result = parse_trades(source.read())

    if result.errors:
        _print_errors(result.errors)

    if not result.trades:
        console.print(Panel(
            "[red]No trades found in input.[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    store = get_data_store(config)
    user_id = get_user_id(config)
    session_id = resolve_session(store, config, session_id)

    current = merge_trades([], store.get_trades(user_id, session_id))
    incoming = merge_trades([], result.trades)
    new_trades = diff_trades(current, incoming)
    ledger = merge_trades(current, incoming)

    if new_trades and not dry_run:
        store.upsert_trades(user_id, session_id, new_trades)

    table = Table(title="New Trades", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Symbol", style="bold")
    table.add_column("Side")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Value", justify="right")
    for trade in new_trades:
        side_color = "green" if trade.side.value == "Buy" else "red"
        table.add_row(
            trade.time or "-",
            trade.symbol,
            f"[{side_color}]{trade.side.value}[/{side_color}]",
            format_amount(trade.price),
            format_amount(trade.base_amount),
            f"{format_amount(trade.quote_amount)} {trade.quote_asset}",
        )
    if new_trades:
        console.print(table)

    console.print(
        f"\n[bold]Parsed:[/bold] {len(result.trades)}  "
        f"[bold]New:[/bold] {len(new_trades)}  "
        f"[bold]Duplicates:[/bold] {len(result.trades) - len(new_trades)}  "
        f"[bold]Ledger size:[/bold] {len(ledger)}"
    )
    if dry_run:
        console.print("[dim]Dry run: nothing was saved[/dim]")
