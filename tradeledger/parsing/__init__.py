"""Parsers for free-form trade exports."""

from tradeledger.parsing.detector import (
    STRATEGIES,
    FormatStrategy,
    detect_and_parse,
    parse_trades,
)

__all__ = [
    "STRATEGIES",
    "FormatStrategy",
    "detect_and_parse",
    "parse_trades",
]
