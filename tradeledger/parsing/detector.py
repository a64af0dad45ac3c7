"""Format detection for raw trade exports.

Strategies are tried in a fixed order. Each one inspects the cleaned
lines and either declines, or returns the lines it wants to parse. The
first strategy whose parser yields at least one trade wins; a strategy
marked ``terminal`` wins even with no trades, and the last strategy is
always returned so callers still see its errors.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tradeledger.models import ParseResult
from tradeledger.parsing.block import parse_block_format
from tradeledger.parsing.legacy import parse_legacy_format
from tradeledger.parsing.normalize import clean_lines
from tradeledger.parsing.table import (
    is_header_line,
    is_headerless_row,
    parse_headerless_table,
    parse_table_format,
)
from tradeledger.parsing.vertical import parse_vertical_format

logger = logging.getLogger(__name__)

Selector = Callable[[list[str]], Optional[list[str]]]
Parser = Callable[[list[str]], ParseResult]


@dataclass(frozen=True)
class FormatStrategy:
    """A named (selector, parser) pair."""

    name: str
    select: Selector
    parse: Parser
    terminal: bool = False


def _select_headered(lines: list[str]) -> Optional[list[str]]:
    for index, line in enumerate(lines):
        if is_header_line(line):
            return lines[index:]
    return None


def _select_headerless(lines: list[str]) -> Optional[list[str]]:
    if any('{"' in line or is_headerless_row(line) for line in lines):
        return lines
    return None


def _select_block(lines: list[str]) -> Optional[list[str]]:
    if any("--" in line or "Filled" in line for line in lines):
        return lines
    return None


def _select_all(lines: list[str]) -> Optional[list[str]]:
    return lines


STRATEGIES: list[FormatStrategy] = [
    FormatStrategy("headered-table", _select_headered, parse_table_format, terminal=True),
    FormatStrategy("headerless-table", _select_headerless, parse_headerless_table),
    FormatStrategy("block", _select_block, parse_block_format),
    FormatStrategy("vertical", _select_all, parse_vertical_format),
    FormatStrategy("legacy", _select_all, parse_legacy_format, terminal=True),
]


def detect_and_parse(
    lines: list[str], strategies: Optional[list[FormatStrategy]] = None
) -> tuple[str, ParseResult]:
    """Run strategies in order over pre-cleaned lines.

    Args:
        lines: Trimmed, non-blank input lines.
        strategies: Override for the default strategy order.

    Returns:
        Name of the strategy used and its ParseResult.
    """
    strategies = STRATEGIES if strategies is None else strategies
    result = ParseResult()
    name = ""

    for strategy in strategies:
        selected = strategy.select(lines)
        if selected is None:
            continue
        name, result = strategy.name, strategy.parse(selected)
        if result.trades or strategy.terminal:
            break
        logger.debug("Strategy %s found no trades, falling back", strategy.name)

    logger.info(
        "Parsed %d trades with %d errors using %s format",
        len(result.trades),
        len(result.errors),
        name or "no",
    )
    return name, result


def parse_trades(text: str) -> ParseResult:
    """Parse a raw trade export into canonical trade records.

    Never raises on malformed input: rejected lines are reported in
    ``ParseResult.errors`` next to whatever trades could be extracted.
    """
    _, result = detect_and_parse(clean_lines(text))
    return result
