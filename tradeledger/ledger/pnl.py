"""FIFO cost-basis PnL engine.

Lots are rebuilt from the full trade history on every call; nothing is
persisted between calls. Trades are processed by ascending time, with
trades lacking a time processed first and ties kept in input order.
"""

from collections import deque
from decimal import Decimal
from typing import Mapping, Optional

from tradeledger.models import (
    Lot,
    PnLPoint,
    PnLSummary,
    PositionSummary,
    PriceQuote,
    Side,
    TradeRecord,
)
from tradeledger.parsing.normalize import time_sort_key

ZERO = Decimal("0")

# Timeline label for trades without a time
MISSING_TIME = "—"


def sort_oldest_first(trades: list[TradeRecord]) -> list[TradeRecord]:
    return sorted(trades, key=lambda trade: time_sort_key(trade.time))


class FifoBook:
    """Per-symbol FIFO lot queues plus the running realized PnL."""

    def __init__(self) -> None:
        self.lots: dict[str, deque[Lot]] = {}
        self.realized_pnl = ZERO
        self.fee_totals: dict[str, Decimal] = {}

    def apply(self, trade: TradeRecord) -> None:
        """Book one trade against its symbol's lot queue."""
        fee_amount = trade.fee_amount or ZERO
        if fee_amount > 0 and trade.fee_asset:
            self.fee_totals[trade.fee_asset] = (
                self.fee_totals.get(trade.fee_asset, ZERO) + fee_amount
            )

        fee_in_base = fee_amount if trade.fee_asset == trade.base_asset else ZERO
        fee_in_quote = fee_amount if trade.fee_asset == trade.quote_asset else ZERO
        net_base = max(trade.base_amount - fee_in_base, ZERO)

        if trade.side == Side.BUY:
            # A buy whose fee ate the whole quantity opens no lot
            if net_base == 0:
                return
            total_cost = trade.price * net_base + fee_in_quote
            self.lots.setdefault(trade.symbol, deque()).append(
                Lot(qty=net_base, cost_per_unit=total_cost / net_base)
            )
            return

        lots = self.lots.setdefault(trade.symbol, deque())
        cost_basis = self._consume(lots, net_base)
        proceeds = trade.price * net_base
        self.realized_pnl += proceeds - fee_in_quote - cost_basis

    @staticmethod
    def _consume(lots: deque[Lot], quantity: Decimal) -> Decimal:
        """Take quantity from the oldest lots and return its cost basis.

        Selling more than is held only consumes what is open.
        """
        remaining = quantity
        cost_basis = ZERO
        while remaining > 0 and lots:
            lot = lots[0]
            taken = min(remaining, lot.qty)
            cost_basis += taken * lot.cost_per_unit
            lot.qty -= taken
            remaining -= taken
            if lot.qty <= 0:
                lots.popleft()
        return cost_basis

    def positions(
        self, prices: Optional[Mapping[str, PriceQuote]] = None
    ) -> list[PositionSummary]:
        """Summaries of every symbol that still has open quantity."""
        prices = prices or {}
        summaries = []
        for symbol, lots in self.lots.items():
            qty = sum((lot.qty for lot in lots), ZERO)
            if qty <= 0:
                continue
            total_cost = sum((lot.qty * lot.cost_per_unit for lot in lots), ZERO)
            avg_cost = total_cost / qty
            quote = prices.get(symbol)
            market_price = quote.price if quote is not None else None
            unrealized = (market_price - avg_cost) * qty if market_price is not None else ZERO
            summaries.append(
                PositionSummary(
                    symbol=symbol,
                    qty=qty,
                    avg_cost=avg_cost,
                    market_price=market_price,
                    unrealized_pnl=unrealized,
                )
            )
        return summaries


def calculate_pnl(
    trades: list[TradeRecord],
    prices: Optional[Mapping[str, PriceQuote]] = None,
) -> PnLSummary:
    """Compute realized and unrealized PnL with FIFO lot matching.

    Args:
        trades: Trades in any order.
        prices: Symbol to current quote. Symbols without a quote get
            zero unrealized PnL.

    Returns:
        PnLSummary with fee totals and open positions.
    """
    book = FifoBook()
    for trade in sort_oldest_first(trades):
        book.apply(trade)

    positions = book.positions(prices)
    return PnLSummary(
        realized_pnl=book.realized_pnl,
        unrealized_pnl=sum((position.unrealized_pnl for position in positions), ZERO),
        fee_totals=book.fee_totals,
        positions=positions,
    )


def build_pnl_timeline(trades: list[TradeRecord]) -> list[PnLPoint]:
    """Running realized PnL, one point per trade in processing order."""
    book = FifoBook()
    timeline = []
    for trade in sort_oldest_first(trades):
        book.apply(trade)
        timeline.append(
            PnLPoint(time=trade.time or MISSING_TIME, realized_pnl=book.realized_pnl)
        )
    return timeline
