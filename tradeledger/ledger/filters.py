"""Derived views over the ledger: predicate filters and rollups."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from tradeledger.models import Side, TradeRecord
from tradeledger.parsing.normalize import normalize_time, time_sort_key

ZERO = Decimal("0")


class TradeFilter(BaseModel):
    """Filter criteria; None means "any"."""

    symbol: Optional[str] = Field(default=None, description="Exact symbol")
    side: Optional[Side] = Field(default=None, description="Buy or Sell")
    market_type: Optional[str] = Field(default=None, description="Market type")
    order_type: Optional[str] = Field(default=None, description="Order type")
    date_from: Optional[datetime] = Field(default=None, description="Earliest time")
    date_to: Optional[datetime] = Field(default=None, description="Latest time")
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    min_qty: Optional[Decimal] = Field(default=None, ge=0)
    max_qty: Optional[Decimal] = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def matches(self, trade: TradeRecord) -> bool:
        if self.symbol is not None and trade.symbol != self.symbol:
            return False
        if self.side is not None and trade.side != self.side:
            return False
        if self.market_type is not None and trade.market_type != self.market_type:
            return False
        if self.order_type is not None and trade.order_type != self.order_type:
            return False

        if self.min_price is not None and trade.price < self.min_price:
            return False
        if self.max_price is not None and trade.price > self.max_price:
            return False
        if self.min_qty is not None and trade.base_amount < self.min_qty:
            return False
        if self.max_qty is not None and trade.base_amount > self.max_qty:
            return False

        if self.date_from is not None or self.date_to is not None:
            # Trades without a time cannot satisfy a date bound
            if not normalize_time(trade.time):
                return False
            traded_at = time_sort_key(trade.time)
            if self.date_from is not None and traded_at < self.date_from:
                return False
            if self.date_to is not None and traded_at > self.date_to:
                return False

        return True


def filter_trades(
    trades: list[TradeRecord], trade_filter: Optional[TradeFilter] = None
) -> list[TradeRecord]:
    """Return the trades matching every set criterion, order preserved."""
    if trade_filter is None:
        return list(trades)
    return [trade for trade in trades if trade_filter.matches(trade)]


def totals(trades: list[TradeRecord]) -> dict[str, Decimal]:
    """Sum quote and base amounts across trades."""
    return {
        "quote": sum((trade.quote_amount for trade in trades), ZERO),
        "base": sum((trade.base_amount for trade in trades), ZERO),
    }


def _average(cost: Decimal, qty: Decimal) -> Decimal:
    return cost / qty if qty > 0 else ZERO


def average_prices(trades: list[TradeRecord]) -> dict:
    """Volume-weighted average buy and sell prices.

    Returns:
        Dictionary with overall ``avg_buy``, ``avg_sell``, ``buy_qty``,
        ``sell_qty`` and a ``per_symbol`` list with the same keys plus
        ``symbol``, in first-seen symbol order.
    """
    overall = {"buy_qty": ZERO, "buy_cost": ZERO, "sell_qty": ZERO, "sell_proceeds": ZERO}
    per_symbol: dict[str, dict[str, Decimal]] = {}

    for trade in trades:
        stats = per_symbol.setdefault(trade.symbol, dict.fromkeys(overall, ZERO))
        notional = trade.base_amount * trade.price
        for bucket in (overall, stats):
            if trade.side == Side.BUY:
                bucket["buy_qty"] += trade.base_amount
                bucket["buy_cost"] += notional
            else:
                bucket["sell_qty"] += trade.base_amount
                bucket["sell_proceeds"] += notional

    def _rollup(stats: dict[str, Decimal]) -> dict:
        return {
            "avg_buy": _average(stats["buy_cost"], stats["buy_qty"]),
            "avg_sell": _average(stats["sell_proceeds"], stats["sell_qty"]),
            "buy_qty": stats["buy_qty"],
            "sell_qty": stats["sell_qty"],
        }

    result = _rollup(overall)
    result["per_symbol"] = [
        {"symbol": symbol, **_rollup(stats)} for symbol, stats in per_symbol.items()
    ]
    return result


def build_trade_series(trades: list[TradeRecord]) -> list[dict]:
    """Oldest-first rows of time, price, quote and base amount for charting."""
    ordered = sorted(trades, key=lambda trade: time_sort_key(trade.time))
    return [
        {
            "time": trade.time or "—",
            "price": trade.price,
            "quote": trade.quote_amount,
            "base": trade.base_amount,
        }
        for trade in ordered
    ]
