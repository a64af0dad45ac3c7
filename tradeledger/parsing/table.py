"""Parsers for columnar exports, with and without a header row."""

import logging
import re
from decimal import Decimal
from typing import Optional

from tradeledger.models import ParseResult, Side, TradeRecord
from tradeledger.parsing.normalize import (
    normalize_header,
    parse_us_timestamp,
    split_row,
    symbol_to_pair,
    to_number,
)

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("spot pairs", "order type")

# Minimum column count of a headerless row
HEADERLESS_MIN_COLUMNS = 12

TABLE_TIMESTAMP_REGEX = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}$")


def _cell(cols: list[str], index: int) -> Optional[str]:
    """Return the cell at index, or None if the column is absent."""
    if index < 0 or index >= len(cols):
        return None
    return cols[index]


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _fee(value: Optional[str]) -> Optional[Decimal]:
    """Parse a fee cell; zero or empty fees are treated as absent."""
    if not value:
        return None
    amount = to_number(value)
    return amount if amount else None


def is_header_line(line: str) -> bool:
    normalized = normalize_header(line)
    return all(marker in normalized for marker in HEADER_MARKERS)


def is_headerless_row(line: str) -> bool:
    """Check whether a row has the column count and timestamp of variant B."""
    cols = split_row(line)
    if len(cols) < HEADERLESS_MIN_COLUMNS:
        return False
    return bool(TABLE_TIMESTAMP_REGEX.match(cols[-1]))


class _HeaderIndex:
    """Column positions resolved from a header row."""

    def __init__(self, header_line: str):
        self.headers = [normalize_header(cell) for cell in split_row(header_line)]
        self.symbol = self._find("spot pairs")
        self.order_type = self._find("order type")
        self.side = self._find("direction")
        self.fee_coin = self._find("feecoin")
        self.fee_alt = self._find("execfeev2")
        self.filled_value = self._find("filled value")
        self.filled_price = self._find("filled price")
        self.filled_qty = self._find("filled quantity")
        self.fees = self._find("fees")
        self.txn_id = self._find("transaction id")
        self.order_no = self._find("order no.")
        self.timestamp = self._find("timestamp (utc)")

    def _find(self, name: str) -> int:
        try:
            return self.headers.index(normalize_header(name))
        except ValueError:
            return -1

    def __len__(self) -> int:
        return len(self.headers)


def parse_table_format(lines: list[str]) -> ParseResult:
    """Parse a headered table; the first line must be the header row.

    Args:
        lines: Header row followed by data rows.

    Returns:
        ParseResult with one trade per valid row.
    """
    result = ParseResult()
    if not lines:
        return result

    index = _HeaderIndex(lines[0])

    for line in lines[1:]:
        cols = split_row(line)
        if len(cols) < len(index):
            result.errors.append(f'Not enough columns in row: "{line}"')
            continue

        side = Side.from_text(_cell(cols, index.side))
        if side is None:
            result.errors.append(f'Could not recognize trade side: "{line}"')
            continue

        pair = symbol_to_pair(_cell(cols, index.symbol) or "")
        fee_raw = _cell(cols, index.fees) or _cell(cols, index.fee_alt)

        result.trades.append(
            TradeRecord(
                symbol=pair.symbol,
                market_type="Spot",
                order_type=_cell(cols, index.order_type) or "",
                side=side,
                quote_amount=to_number(_cell(cols, index.filled_value)),
                quote_asset=pair.quote,
                price=to_number(_cell(cols, index.filled_price)),
                price_asset=pair.quote,
                base_amount=to_number(_cell(cols, index.filled_qty)),
                base_asset=pair.base,
                fee_amount=_fee(fee_raw),
                fee_asset=_blank_to_none(_cell(cols, index.fee_coin)),
                time=parse_us_timestamp(_cell(cols, index.timestamp)),
                order_id=_blank_to_none(_cell(cols, index.order_no)),
                trade_id=_blank_to_none(_cell(cols, index.txn_id)),
                raw_lines=[line],
            )
        )

    return result


def _parse_variant_b(line: str, cols: list[str], side: Side) -> TradeRecord:
    # symbol orderType side feeCoin feeAmount filledValue filledPrice filledQty
    # fees txnId orderNo timestamp
    pair = symbol_to_pair(cols[0])
    fee = _fee(cols[8]) if cols[8] else _fee(cols[4])
    return TradeRecord(
        symbol=pair.symbol,
        market_type="Spot",
        order_type=cols[1],
        side=side,
        quote_amount=to_number(cols[5]),
        quote_asset=pair.quote,
        price=to_number(cols[6]),
        price_asset=pair.quote,
        base_amount=to_number(cols[7]),
        base_asset=pair.base,
        fee_amount=fee,
        fee_asset=_blank_to_none(cols[3]),
        time=parse_us_timestamp(cols[11]),
        order_id=_blank_to_none(cols[10]),
        trade_id=_blank_to_none(cols[9]),
        raw_lines=[line],
    )


def _parse_variant_a(line: str, cols: list[str], side: Side) -> TradeRecord:
    # symbol feeCoin fee feesJson orderType side value price avgPrice qty
    # filledValue status orderNo
    pair = symbol_to_pair(cols[0])
    order_no = _cell(cols, 12)
    if order_no is None:
        order_no = cols[11]
    return TradeRecord(
        symbol=pair.symbol,
        market_type="Spot",
        order_type=cols[4],
        side=side,
        quote_amount=to_number(cols[6]),
        quote_asset=pair.quote,
        price=to_number(cols[7]),
        price_asset=pair.quote,
        base_amount=to_number(cols[9]),
        base_asset=pair.base,
        fee_amount=_fee(cols[2]),
        fee_asset=_blank_to_none(cols[1]),
        order_id=_blank_to_none(order_no),
        raw_lines=[line],
    )


def parse_headerless_table(lines: list[str]) -> ParseResult:
    """Parse positional rows without a header.

    Two layouts are told apart by whether the last column is an
    "M/D/YYYY H:MM" timestamp. Rows shorter than twelve columns are
    ignored, and variant A rows whose status is not FILLED are dropped
    as unexecuted orders.
    """
    result = ParseResult()

    for line in lines:
        cols = split_row(line)
        if len(cols) < HEADERLESS_MIN_COLUMNS:
            continue

        is_variant_b = bool(TABLE_TIMESTAMP_REGEX.match(cols[-1]))
        side = Side.from_text(cols[2] if is_variant_b else cols[5])
        if side is None:
            result.errors.append(f'Could not recognize trade side: "{line}"')
            continue

        if is_variant_b:
            result.trades.append(_parse_variant_b(line, cols, side))
            continue

        status = cols[11].upper()
        if status and status != "FILLED":
            logger.debug("Skipping %s order: %s", status, line)
            continue
        result.trades.append(_parse_variant_a(line, cols, side))

    return result
