"""PnL command for TradeLedger CLI.

Runs the FIFO engine over the session ledger and shows realized PnL,
open positions against market prices, fee totals and the running
realized PnL per trade.
"""

from decimal import Decimal
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tradeledger.cli._common import format_amount, format_signed
from tradeledger.cli.ledger import build_filter, filter_options, load_ledger

console = Console()


def parse_price_overrides(values: tuple[str, ...]) -> dict:
    """Turn ("SOL/USDT=144.1", ...) into a symbol to PriceQuote map."""
    import time

    from tradeledger.models import PriceQuote

    prices = {}
    for value in values:
        symbol, sep, price = value.partition("=")
        if not sep or not symbol.strip():
            raise click.BadParameter(f"expected SYMBOL=PRICE, got {value!r}", param_hint="--price")
        try:
            amount = Decimal(price.strip().replace(",", ""))
        except ArithmeticError as e:
            raise click.BadParameter(f"invalid price in {value!r}", param_hint="--price") from e
        prices[symbol.strip()] = PriceQuote(symbol=symbol.strip(), price=amount, updated_at=time.time())
    return prices


def fetch_live_prices(config: dict, symbols: list[str]) -> dict:
    """Look up spot prices for symbols; failed lookups are omitted."""
    from tradeledger.pricing import PriceCache, PriceProvider

    pricing = config["pricing"]
    cache = PriceCache(ttl_seconds=float(pricing["cache_ttl_seconds"]))
    with PriceProvider(
        base_url=pricing["base_url"],
        timeout=float(pricing["timeout_seconds"]),
        cache=cache,
    ) as provider:
        return provider.get_prices(symbols)


@click.command()
@click.option("--session", "session_id", default=None, help="Session ID.")
@click.option(
    "--price",
    "price_overrides",
    multiple=True,
    help="Market price as SYMBOL=PRICE. Repeatable.",
)
@click.option("--live", is_flag=True, default=False, help="Fetch spot prices for open positions.")
@click.option("--timeline", is_flag=True, default=False, help="Show running realized PnL per trade.")
@filter_options
@click.pass_context
def pnl(
    ctx: click.Context,
    session_id: Optional[str],
    price_overrides: tuple[str, ...],
    live: bool,
    timeline: bool,
    **criteria,
) -> None:
    """Display FIFO realized and unrealized PnL.

    Unrealized PnL is only computed for symbols with a market price,
    either from --price or, with --live, from the spot price API.

    \b
    Examples:
      tradeledger pnl
      tradeledger pnl --price SOL/USDT=150
      tradeledger pnl --live --timeline
    """
    from tradeledger.ledger import build_pnl_timeline, calculate_pnl, filter_trades

    config = ctx.obj["config"]
    ledger = filter_trades(load_ledger(config, session_id), build_filter(**criteria))

    if not ledger:
        console.print(Panel(
            "[dim]No trades in ledger[/dim]",
            title="[bold]PnL[/bold]",
            border_style="dim",
        ))
        return

    prices = {}
    if live:
        open_symbols = [position.symbol for position in calculate_pnl(ledger).positions]
        with console.status("[bold green]Fetching prices..."):
            prices = fetch_live_prices(config, open_symbols)
    prices.update(parse_price_overrides(price_overrides))

    summary = calculate_pnl(ledger, prices)

    console.print(Panel(
        f"[bold]Realized PnL:[/bold] {format_signed(summary.realized_pnl)}\n"
        f"[bold]Unrealized PnL:[/bold] {format_signed(summary.unrealized_pnl)}\n"
        f"[bold]Trades:[/bold] {len(ledger)}",
        title="[bold]PnL Summary[/bold]",
        border_style="cyan",
    ))

    if summary.positions:
        table = Table(title="Open Positions", show_header=True, header_style="bold cyan")
        table.add_column("Symbol", style="bold")
        table.add_column("Qty", justify="right")
        table.add_column("Avg Cost", justify="right")
        table.add_column("Market", justify="right")
        table.add_column("Unrealized", justify="right")
        for position in summary.positions:
            table.add_row(
                position.symbol,
                format_amount(position.qty),
                format_amount(position.avg_cost),
                format_amount(position.market_price),
                format_signed(position.unrealized_pnl)
                if position.market_price is not None
                else "[dim]no price[/dim]",
            )
        console.print(table)

    if summary.fee_totals:
        fee_table = Table(title="Fees Paid", show_header=True, header_style="bold cyan")
        fee_table.add_column("Asset", style="bold")
        fee_table.add_column("Total", justify="right")
        for asset, total in summary.fee_totals.items():
            fee_table.add_row(asset, format_amount(total, 8))
        console.print(fee_table)

    if timeline:
        points = build_pnl_timeline(ledger)
        timeline_table = Table(title="Realized PnL Timeline", show_header=True, header_style="bold cyan")
        timeline_table.add_column("Time", style="dim")
        timeline_table.add_column("Realized PnL", justify="right")
        for point in points:
            timeline_table.add_row(point.time, format_signed(point.realized_pnl))
        console.print(timeline_table)
