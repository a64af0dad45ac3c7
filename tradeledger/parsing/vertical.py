"""Parser for exports that put one field per line.

Each record is a fixed sequence of lines::

    SOL/USDT
    Spot
    Limit
    Buy
    1,436.600000 USDT
    143.66
    10.0000  SOL
    Trade               optional fee label
    0.01  SOL           fee, only after the label
    --
    2026-01-18 01:36:31 optional
    17832426            optional order ID
    --
"""

import logging
import re
from decimal import Decimal
from typing import Any, Optional

from tradeledger.models import ParseResult, Side, TradeRecord
from tradeledger.parsing.normalize import collapse_whitespace, to_number

logger = logging.getLogger(__name__)

VERTICAL_TIME_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}$")

SEPARATOR = "--"
FEE_LABEL = "trade"
DEFAULT_QUOTE_ASSET = "USDT"


def _line(lines: list[str], index: int) -> Optional[str]:
    return lines[index] if index < len(lines) else None


class _VerticalRecord:
    """Fills one record from consecutive lines starting at the symbol line."""

    def __init__(self, lines: list[str], start: int):
        self.lines = lines
        self.index = start
        self.raw_lines: list[str] = []
        self.fields: dict[str, Any] = {}

    def take(self) -> Optional[str]:
        line = _line(self.lines, self.index)
        if line is not None:
            self.raw_lines.append(line)
            self.index += 1
        return line

    def peek(self) -> Optional[str]:
        return _line(self.lines, self.index)

    def skip_separators(self) -> None:
        while self.peek() == SEPARATOR:
            self.index += 1

    def take_amounts(self, symbol: str, quote_line: str) -> None:
        quote_parts = quote_line.split()
        quote_asset = quote_parts[1] if len(quote_parts) > 1 else DEFAULT_QUOTE_ASSET

        price_line = self.take()
        qty_parts = (self.take() or "").split()

        self.fields.update(
            quote_amount=to_number(quote_parts[0]),
            quote_asset=quote_asset,
            price=to_number(price_line) if price_line else Decimal("0"),
            price_asset=quote_asset,
            base_amount=to_number(qty_parts[0]) if qty_parts else Decimal("0"),
            base_asset=qty_parts[1] if len(qty_parts) > 1 else symbol.split("/")[0],
        )

    def take_fee(self) -> None:
        label = self.peek()
        fee_line = _line(self.lines, self.index + 1)
        if label is None or label.lower() != FEE_LABEL or not fee_line:
            return
        self.take()
        fee_parts = self.take().split()
        self.fields["fee_amount"] = to_number(fee_parts[0])
        if len(fee_parts) > 1:
            self.fields["fee_asset"] = fee_parts[1]

    def take_time(self) -> None:
        line = self.peek()
        if line is not None and VERTICAL_TIME_REGEX.match(line):
            self.take()
            self.fields["time"] = collapse_whitespace(line)

    def take_order_id(self) -> None:
        line = self.peek()
        if line is not None and line != SEPARATOR:
            self.take()
            self.fields["order_id"] = line

    def build(self) -> TradeRecord:
        return TradeRecord(**self.fields, raw_lines=self.raw_lines)


def parse_vertical_format(lines: list[str]) -> ParseResult:
    """Parse one-field-per-line records anchored on a BASE/QUOTE line.

    Groups missing any of market, order type, side or quote amount are
    skipped silently. An unknown side is reported and the scan moves on
    by a single line so the next symbol line can be found.
    """
    result = ParseResult()

    i = 0
    while i < len(lines):
        symbol = lines[i]
        if "/" not in symbol:
            i += 1
            continue

        market_type, order_type, side_raw, quote_line = (
            _line(lines, i + offset) for offset in range(1, 5)
        )
        if not market_type or not order_type or not side_raw or not quote_line:
            i += 1
            continue

        side = Side.from_text(side_raw)
        if side is None:
            logger.debug("Unknown side %r at line %d", side_raw, i)
            result.errors.append(f'Could not recognize trade side: "{side_raw}"')
            i += 1
            continue

        record = _VerticalRecord(lines, i)
        for _ in range(5):
            record.take()
        record.fields.update(
            symbol=symbol, market_type=market_type, order_type=order_type, side=side
        )
        record.take_amounts(symbol, quote_line)
        record.take_fee()
        record.skip_separators()
        record.take_time()
        record.take_order_id()
        record.skip_separators()

        result.trades.append(record.build())
        i = record.index

    return result
