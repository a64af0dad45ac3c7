"""Parser for the original one-line-per-trade export.

    SOL/USDT Spot Limit Sell 720.700000 USDT 144.14 USDT 5.0000 SOL
    0.720700000000 USDT                         optional fee line
    2026-01-16 22:34:02 16943102 69540352       optional time line
"""

import logging
import re

from tradeledger.models import ParseResult, TradeRecord
from tradeledger.parsing.block import MAIN_LINE_REGEX, anchor_fields
from tradeledger.parsing.normalize import collapse_whitespace, to_number

logger = logging.getLogger(__name__)

FEE_LINE_REGEX = re.compile(r"^([\d,.]+)\s+(\S+)")
TIME_LINE_REGEX = re.compile(
    r"^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+(\S+)\s+(\S+)"
)


def parse_legacy_format(lines: list[str]) -> ParseResult:
    """Parse single-line trades, each optionally followed by fee and time lines.

    Every line that is neither a trade nor a continuation of one is
    reported as an error.
    """
    result = ParseResult()

    i = 0
    while i < len(lines):
        line = lines[i]
        if not MAIN_LINE_REGEX.match(line):
            logger.debug("Unrecognized line: %s", line)
            result.errors.append(f'Could not parse trade line: "{line}"')
            i += 1
            continue

        fields = anchor_fields(line)
        raw_lines = [line]
        i += 1

        fee_match = FEE_LINE_REGEX.match(lines[i]) if i < len(lines) else None
        if fee_match:
            fields["fee_amount"] = to_number(fee_match.group(1))
            fields["fee_asset"] = fee_match.group(2)
            raw_lines.append(lines[i])
            i += 1

        time_match = TIME_LINE_REGEX.match(lines[i]) if i < len(lines) else None
        if time_match:
            fields["time"] = collapse_whitespace(time_match.group(1))
            fields["order_id"] = time_match.group(2)
            fields["trade_id"] = time_match.group(3)
            raw_lines.append(lines[i])
            i += 1

        result.trades.append(TradeRecord(**fields, raw_lines=raw_lines))

    return result
