"""Shared helpers for turning export text into canonical values."""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

QUOTE_ASSETS = ["USDT", "USDC", "BUSD", "BTC", "ETH", "BNB", "MNT", "EUR"]

CANONICAL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Sort key used for records without a usable time
EPOCH = datetime(1970, 1, 1)

_NUMBER_PREFIX = re.compile(r"^(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_US_TIMESTAMP = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?$"
)
_TIME_SUFFIX = re.compile(r"(?<=\d\d:\d\d)(\.\d+)?(Z|[+-]\d\d(?::?\d\d)?)?$")


class Pair(NamedTuple):
    symbol: str
    base: str
    quote: str


def clean_lines(text: str) -> list[str]:
    """Split raw input into trimmed, non-blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def to_number(value: Optional[str]) -> Decimal:
    """Parse a numeric cell, ignoring thousands separators.

    Only the leading unsigned numeric part is used; text without one
    parses as 0.
    """
    match = _NUMBER_PREFIX.match((value or "").replace(",", "").strip())
    if not match:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")


def split_row(line: str) -> list[str]:
    """Split a row on tabs, else commas, else runs of two or more spaces."""
    if "\t" in line:
        return [cell.strip() for cell in line.split("\t")]
    if "," in line:
        return [cell.strip() for cell in line.split(",")]
    return [cell.strip() for cell in re.split(r"\s{2,}", line)]


def normalize_header(value: str) -> str:
    return re.sub(r"\s+", " ", value.lower()).strip()


def symbol_to_pair(value: str) -> Pair:
    """Split a symbol like "SOL/USDT" or "SOLUSDT" into base and quote."""
    if "/" in value:
        base, quote = value.split("/")[:2]
        return Pair(value, base, quote)
    upper = value.upper()
    quote = next((asset for asset in QUOTE_ASSETS if upper.endswith(asset)), None)
    if quote is None:
        return Pair(upper, upper, upper)
    base = upper[: len(upper) - len(quote)]
    return Pair(f"{base}/{quote}", base, quote)


def parse_us_timestamp(value: Optional[str]) -> Optional[str]:
    """Convert "M/D/YYYY H:MM[:SS]" to canonical form.

    Returns None for anything that is not a real calendar time.
    """
    match = _US_TIMESTAMP.match((value or "").strip())
    if not match:
        return None
    month, day, year, hour, minute, second = match.groups()
    try:
        parsed = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second or 0)
        )
    except ValueError:
        return None
    return parsed.strftime(CANONICAL_TIME_FORMAT)


def collapse_whitespace(value: str) -> str:
    return " ".join(value.split())


def normalize_time(value: Optional[str]) -> str:
    """Bring ISO-ish timestamps to "YYYY-MM-DD HH:MM:SS".

    Replaces the first "T" separator and drops fractional seconds and
    a trailing "Z", "+HH", "+HHMM" or "+HH:MM" offset. Empty input gives "".
    Offsets are dropped, not applied.
    """
    if not value:
        return ""
    return _TIME_SUFFIX.sub("", value.replace("T", " ", 1), count=1)


def time_sort_key(value: Optional[str]) -> datetime:
    """Datetime used to order records; missing or bad times sort as EPOCH."""
    normalized = normalize_time(value)
    if not normalized:
        return EPOCH
    try:
        return datetime.fromisoformat(normalized).replace(tzinfo=None)
    except ValueError:
        return EPOCH
