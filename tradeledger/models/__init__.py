"""Data models for TradeLedger."""

from tradeledger.models.trade import ParseResult, Side, TradeRecord
from tradeledger.models.position import Lot, PnLPoint, PnLSummary, PositionSummary
from tradeledger.models.quote import PriceQuote
from tradeledger.models.session import TradeSession

__all__ = [
    "Lot",
    "ParseResult",
    "PnLPoint",
    "PnLSummary",
    "PositionSummary",
    "PriceQuote",
    "Side",
    "TradeRecord",
    "TradeSession",
]
