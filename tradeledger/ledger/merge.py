"""Identity keys and duplicate-free merging of trade batches."""

from typing import Iterable

from tradeledger.models import TradeRecord
from tradeledger.parsing.normalize import normalize_time, time_sort_key


def trade_key(trade: TradeRecord) -> str:
    """Stable identity of a trade across imports.

    Venue IDs plus time identify a fill when all three are known;
    otherwise the economic fields are combined at 8 decimal places.
    """
    time_key = normalize_time(trade.time)
    if trade.order_id and trade.trade_id and time_key:
        return f"{trade.order_id}|{trade.trade_id}|{time_key}"
    return "|".join(
        [
            trade.symbol.strip(),
            trade.side.value,
            time_key,
            f"{trade.price:.8f}",
            f"{trade.base_amount:.8f}",
            f"{trade.quote_amount:.8f}",
        ]
    )


def sort_newest_first(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Sort by time descending; trades without a time come last."""
    return sorted(trades, key=lambda trade: time_sort_key(trade.time), reverse=True)


def merge_trades(
    current: list[TradeRecord], incoming: list[TradeRecord]
) -> list[TradeRecord]:
    """Fold incoming trades into the current ledger without duplicates.

    Trades already in ``current`` are never replaced.

    Args:
        current: The resident ledger.
        incoming: Newly parsed or fetched trades.

    Returns:
        A new list sorted newest first.
    """
    merged: dict[str, TradeRecord] = {}
    for trade in current:
        merged[trade_key(trade)] = trade
    for trade in incoming:
        merged.setdefault(trade_key(trade), trade)
    return sort_newest_first(merged.values())


def diff_trades(
    current: list[TradeRecord], incoming: list[TradeRecord]
) -> list[TradeRecord]:
    """Return the incoming trades whose key is not in ``current``, in order."""
    existing = {trade_key(trade) for trade in current}
    return [trade for trade in incoming if trade_key(trade) not in existing]
