"""Parser for multi-line "block" exports.

A block starts with an anchor line such as::

    SOL/USDT Spot Limit Buy 1,436.600000 USDT 143.66 USDT 10.0000 SOL

or its short form that stops after the quote amount. Optional
continuation lines follow in a fixed order::

    143.66/143.66 USDT          price
    10.0000 / 10.0000 SOL       quantity
    --                          any number of separators
    1,436.600000 USDT           quote amount confirmation
    Filled                      status
    2026-01-17 17:39:10 1683    time and order ID
"""

import logging
import re
from decimal import Decimal
from typing import Any, Optional

from tradeledger.models import ParseResult, Side, TradeRecord
from tradeledger.parsing.normalize import collapse_whitespace, to_number

logger = logging.getLogger(__name__)

MAIN_LINE_REGEX = re.compile(
    r"^(\S+)\s+(\S+)\s+(\S+)\s+(Buy|Sell)\s+([\d,.]+)\s+(\S+)"
    r"\s+([\d,.]+)\s+(\S+)\s+([\d,.]+)\s+(\S+)"
)
SHORT_MAIN_LINE_REGEX = re.compile(
    r"^(\S+)\s+(\S+)\s+(\S+)\s+(Buy|Sell)\s+([\d,.]+)\s+(\S+)\s*$", re.IGNORECASE
)
CONTINUATION_REGEX = re.compile(r"^([\d,.]+)\s*/\s*[\d,.]*(?:\s+(\S+))?$")
BLOCK_TIME_REGEX = re.compile(r"^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+(\S+)")
_SIDE_TOKEN = re.compile(r"Buy|Sell")

SEPARATOR = "--"
FILLED_STATUS = "Filled"


def is_anchor_candidate(line: str) -> bool:
    return "Spot" in line and bool(_SIDE_TOKEN.search(line))


def anchor_fields(line: str) -> Optional[dict[str, Any]]:
    """Extract trade fields from a full or short anchor line."""
    match = MAIN_LINE_REGEX.match(line)
    if match:
        (symbol, market, order_type, side, quote_amount, quote_asset,
         price, price_asset, base_amount, base_asset) = match.groups()
        return {
            "symbol": symbol,
            "market_type": market,
            "order_type": order_type,
            "side": Side(side),
            "quote_amount": to_number(quote_amount),
            "quote_asset": quote_asset,
            "price": to_number(price),
            "price_asset": price_asset,
            "base_amount": to_number(base_amount),
            "base_asset": base_asset,
        }

    match = SHORT_MAIN_LINE_REGEX.match(line)
    if match:
        symbol, market, order_type, side, quote_amount, quote_asset = match.groups()
        # Price and quantity stay at zero unless continuation lines follow
        return {
            "symbol": symbol,
            "market_type": market,
            "order_type": order_type,
            "side": Side.from_text(side),
            "quote_amount": to_number(quote_amount),
            "quote_asset": quote_asset,
            "price": Decimal("0"),
            "price_asset": quote_asset,
            "base_amount": Decimal("0"),
            "base_asset": symbol.split("/")[0],
        }

    return None


class _BlockCursor:
    """Walks the optional continuation lines of one block."""

    def __init__(self, lines: list[str], start: int, fields: dict[str, Any]):
        self.lines = lines
        self.index = start
        self.fields = fields
        self.raw_lines = [lines[start - 1]]

    def peek(self) -> Optional[str]:
        if self.index < len(self.lines):
            return self.lines[self.index]
        return None

    def take(self) -> str:
        line = self.lines[self.index]
        self.raw_lines.append(line)
        self.index += 1
        return line

    def take_price(self) -> None:
        match = CONTINUATION_REGEX.match(self.peek() or "")
        if not match:
            return
        self.take()
        self.fields["price"] = to_number(match.group(1))
        if match.group(2):
            self.fields["price_asset"] = match.group(2)

    def take_quantity(self) -> None:
        match = CONTINUATION_REGEX.match(self.peek() or "")
        if not match:
            return
        self.take()
        self.fields["base_amount"] = to_number(match.group(1))
        if match.group(2):
            self.fields["base_asset"] = match.group(2)

    def skip_separators(self) -> None:
        while self.peek() == SEPARATOR:
            self.take()

    def take_quote_confirmation(self) -> None:
        line = self.peek()
        if line is None or self.fields["quote_asset"] not in line.upper():
            return
        self.take()
        self.fields["quote_amount"] = to_number(line.split()[0])

    def take_status(self) -> bool:
        """Consume the status line; False means the order was not filled."""
        if self.peek() is None:
            return True
        return self.take() == FILLED_STATUS

    def take_time(self) -> None:
        match = BLOCK_TIME_REGEX.match(self.peek() or "")
        if not match:
            return
        self.take()
        self.fields["time"] = collapse_whitespace(match.group(1))
        self.fields["order_id"] = match.group(2)

    def build(self) -> TradeRecord:
        return TradeRecord(**self.fields, raw_lines=self.raw_lines)


def parse_block_format(lines: list[str]) -> ParseResult:
    """Rebuild trades from anchor lines and their continuation lines.

    Lines that are not anchors are skipped. Anchor-looking lines that
    match neither anchor shape are reported as errors. Blocks whose
    status is not "Filled" are dropped without an error.
    """
    result = ParseResult()

    i = 0
    while i < len(lines):
        line = lines[i]
        if not is_anchor_candidate(line):
            i += 1
            continue

        fields = anchor_fields(line)
        if fields is None:
            result.errors.append(f'Could not parse trade line: "{line}"')
            i += 1
            continue

        cursor = _BlockCursor(lines, i + 1, fields)
        cursor.take_price()
        cursor.take_quantity()
        cursor.skip_separators()
        cursor.take_quote_confirmation()
        if not cursor.take_status():
            logger.debug("Skipping unfilled block: %s", line)
            i = cursor.index
            continue
        cursor.take_time()

        result.trades.append(cursor.build())
        i = cursor.index

    return result
