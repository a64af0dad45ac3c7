"""Ledger commands for TradeLedger CLI.

Handles browsing the filtered trade ledger and managing sessions.
"""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tradeledger.cli._common import (
    DATE_FORMATS,
    DECIMAL,
    format_amount,
    get_data_store,
    get_user_id,
    resolve_session,
)

console = Console()


def filter_options(func):
    """Attach the shared trade filter options to a command."""
    options = [
        click.option("--symbol", default=None, help="Only this symbol, e.g. SOL/USDT."),
        click.option(
            "--side",
            type=click.Choice(["Buy", "Sell"], case_sensitive=False),
            default=None,
            help="Only buys or sells.",
        ),
        click.option("--market", "market_type", default=None, help="Market type, e.g. Spot."),
        click.option("--order-type", default=None, help="Order type, e.g. Limit."),
        click.option("--from", "date_from", type=click.DateTime(DATE_FORMATS), default=None),
        click.option("--to", "date_to", type=click.DateTime(DATE_FORMATS), default=None),
        click.option("--min-price", type=DECIMAL, default=None),
        click.option("--max-price", type=DECIMAL, default=None),
        click.option("--min-qty", type=DECIMAL, default=None),
        click.option("--max-qty", type=DECIMAL, default=None),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_filter(**criteria):
    """Build a TradeFilter from CLI option values."""
    from tradeledger.ledger import TradeFilter
    from tradeledger.models import Side

    side = criteria.pop("side", None)
    return TradeFilter(side=Side.from_text(side) if side else None, **criteria)


def load_ledger(config: dict, session_id: Optional[str]) -> list:
    """Read a session's trades from the store, deduplicated and sorted."""
    from tradeledger.ledger import merge_trades

    store = get_data_store(config)
    session_id = resolve_session(store, config, session_id)
    return merge_trades([], store.get_trades(get_user_id(config), session_id))


@click.command()
@click.option("--session", "session_id", default=None, help="Session ID.")
@click.option("--limit", type=int, default=50, show_default=True, help="Rows to show.")
@filter_options
@click.pass_context
def trades(ctx: click.Context, session_id: Optional[str], limit: int, **criteria) -> None:
    """Display the trade ledger, newest first.

    \b
    Examples:
      tradeledger trades
      tradeledger trades --symbol SOL/USDT --side Buy
      tradeledger trades --from 2026-01-01 --min-qty 5
    """
    from tradeledger.ledger import average_prices, filter_trades, totals

    config = ctx.obj["config"]
    ledger = filter_trades(load_ledger(config, session_id), build_filter(**criteria))

    if not ledger:
        console.print(Panel(
            "[dim]No trades match[/dim]",
            title="[bold]Trades[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Trades", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Symbol", style="bold")
    table.add_column("Type")
    table.add_column("Side")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Fee", justify="right")
    table.add_column("Order ID", style="dim")

    for trade in ledger[:limit]:
        side_color = "green" if trade.side.value == "Buy" else "red"
        fee = (
            f"{format_amount(trade.fee_amount, 8)} {trade.fee_asset or ''}".strip()
            if trade.fee_amount is not None
            else "-"
        )
        table.add_row(
            trade.time or "-",
            trade.symbol,
            f"{trade.market_type} {trade.order_type}".strip(),
            f"[{side_color}]{trade.side.value}[/{side_color}]",
            format_amount(trade.price),
            format_amount(trade.base_amount),
            format_amount(trade.quote_amount),
            fee,
            trade.order_id or "-",
        )

    console.print(table)
    if len(ledger) > limit:
        console.print(f"[dim]Showing {limit} of {len(ledger)} trades[/dim]")

    sums = totals(ledger)
    averages = average_prices(ledger)
    console.print(
        f"\n[bold]Trades:[/bold] {len(ledger)}  "
        f"[bold]Volume:[/bold] {format_amount(sums['quote'], 2)}  "
        f"[bold]Qty:[/bold] {format_amount(sums['base'])}"
    )

    avg_table = Table(title="Average Prices", show_header=True, header_style="bold cyan")
    avg_table.add_column("Symbol", style="bold")
    avg_table.add_column("Avg Buy", justify="right")
    avg_table.add_column("Buy Qty", justify="right")
    avg_table.add_column("Avg Sell", justify="right")
    avg_table.add_column("Sell Qty", justify="right")
    for item in averages["per_symbol"]:
        avg_table.add_row(
            item["symbol"],
            format_amount(item["avg_buy"]) if item["avg_buy"] else "-",
            format_amount(item["buy_qty"]),
            format_amount(item["avg_sell"]) if item["avg_sell"] else "-",
            format_amount(item["sell_qty"]),
        )
    console.print(avg_table)


@click.group()
def session() -> None:
    """Manage trade sessions."""


@session.command("create")
@click.argument("name")
@click.pass_context
def session_create(ctx: click.Context, name: str) -> None:
    """Create a named session and print its ID."""
    config = ctx.obj["config"]
    store = get_data_store(config)
    created = store.create_session(get_user_id(config), name)
    console.print(f"[green]✓[/green] Created session [bold]{created.name}[/bold]: {created.id}")


@session.command("list")
@click.pass_context
def session_list(ctx: click.Context) -> None:
    """List sessions, newest first."""
    config = ctx.obj["config"]
    store = get_data_store(config)
    user_id = get_user_id(config)
    sessions = store.get_sessions(user_id)

    if not sessions:
        console.print("[dim]No sessions yet. Create one with 'tradeledger session create NAME'.[/dim]")
        return

    table = Table(title="Sessions", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Created")
    table.add_column("Trades", justify="right")
    for item in sessions:
        table.add_row(
            item.id,
            item.name,
            item.created_at.strftime("%Y-%m-%d %H:%M"),
            str(len(store.get_trades(user_id, item.id))),
        )
    console.print(table)
