"""Ledger operations: merge/dedup, FIFO PnL and filtering."""

from tradeledger.ledger.filters import (
    TradeFilter,
    average_prices,
    build_trade_series,
    filter_trades,
    totals,
)
from tradeledger.ledger.merge import diff_trades, merge_trades, trade_key
from tradeledger.ledger.pnl import build_pnl_timeline, calculate_pnl

__all__ = [
    "TradeFilter",
    "average_prices",
    "build_pnl_timeline",
    "build_trade_series",
    "calculate_pnl",
    "diff_trades",
    "filter_trades",
    "merge_trades",
    "totals",
    "trade_key",
]
