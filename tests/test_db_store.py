"""Property-based tests for the database store.

**Feature: trade-ledger**
"""

import tempfile
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradeledger.db.store import DataStore
from tradeledger.exceptions import SessionNotFoundError
from tradeledger.models import Side, TradeRecord


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


def make_trade(order_id="1", trade_id="10", time="2026-01-16 22:34:02", **overrides) -> TradeRecord:
    fields = {
        "symbol": "SOL/USDT",
        "order_type": "Limit",
        "side": Side.SELL,
        "price": Decimal("144.14"),
        "price_asset": "USDT",
        "base_amount": Decimal("5.0000"),
        "base_asset": "SOL",
        "quote_amount": Decimal("720.700000"),
        "quote_asset": "USDT",
        "fee_amount": Decimal("0.720700000000"),
        "fee_asset": "USDT",
        "time": time,
        "order_id": order_id,
        "trade_id": trade_id,
    }
    fields.update(overrides)
    return TradeRecord(**fields)


class TestDatabaseSchemaCompleteness:
    """
    **Feature: trade-ledger, Property 20: Database Schema Completeness**

    *For any* fresh database, the sessions and trades tables should exist.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        """Test that all required tables exist in a fresh database."""
        tables = temp_db.get_tables()

        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_reopen_existing_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "test.db"
            DataStore(db_path).upsert_trades("u1", "s1", [make_trade()])

            reopened = DataStore(db_path)

            assert reopened.get_stats() == {"sessions": 0, "trades": 1}


class TestSessions:
    """
    **Feature: trade-ledger, Property 21: Session Ownership**

    *For any* created session, it is visible to its owner only.
    """

    def test_create_and_get(self, temp_db: DataStore):
        session = temp_db.create_session("u1", "January")

        assert temp_db.get_session("u1", session.id) == session
        assert temp_db.get_session("u2", session.id) is None
        assert temp_db.get_sessions("u1") == [session]
        assert temp_db.get_sessions("u2") == []

    def test_require_missing_session(self, temp_db: DataStore):
        with pytest.raises(SessionNotFoundError) as exc_info:
            temp_db.require_session("u1", "nope")

        assert exc_info.value.session_id == "nope"

    def test_sessions_newest_first(self, temp_db: DataStore):
        first = temp_db.create_session("u1", "first")
        second = temp_db.create_session("u1", "second")

        names = [session.name for session in temp_db.get_sessions("u1")]

        assert set(names) == {"first", "second"}
        if second.created_at > first.created_at:
            assert names == ["second", "first"]


class TestTradeStorage:
    """
    **Feature: trade-ledger, Property 22: Upsert Idempotence**

    *For any* batch of trades, storing it twice leaves one row per
    (order ID, trade ID, time).
    """

    def test_round_trip_preserves_values(self, temp_db: DataStore):
        trade = make_trade(raw_lines=["SOL/USDT Spot Limit Sell ..."])

        temp_db.upsert_trades("u1", "s1", [trade])
        stored = temp_db.get_trades("u1", "s1")

        assert len(stored) == 1
        loaded = stored[0]
        assert loaded.price == Decimal("144.14")
        assert loaded.base_amount == Decimal("5.0000")
        assert loaded.fee_amount == Decimal("0.720700000000")
        assert loaded.time == "2026-01-16 22:34:02"
        assert loaded.session_id == "s1"
        assert loaded.raw_lines == []
        assert loaded.model_dump(exclude={"session_id", "raw_lines"}) == trade.model_dump(
            exclude={"session_id", "raw_lines"}
        )

    def test_missing_fee_round_trip(self, temp_db: DataStore):
        temp_db.upsert_trades("u1", "s1", [make_trade(fee_amount=None, fee_asset=None)])

        loaded = temp_db.get_trades("u1", "s1")[0]

        assert loaded.fee_amount is None
        assert loaded.fee_asset is None

    @given(
        order_ids=st.lists(
            st.integers(min_value=1, max_value=10**9).map(str),
            min_size=1,
            max_size=10,
            unique=True,
        )
    )
    @settings(max_examples=30)
    def test_upsert_twice(self, order_ids: list[str]):
        """
        *For any* set of distinct fills, a second upsert adds no rows.
        """
        trades = [make_trade(order_id=order_id) for order_id in order_ids]
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")

            store.upsert_trades("u1", "s1", trades)
            store.upsert_trades("u1", "s1", trades)

            assert len(store.get_trades("u1", "s1")) == len(order_ids)

    def test_upsert_updates_existing_row(self, temp_db: DataStore):
        temp_db.upsert_trades("u1", "s1", [make_trade()])
        temp_db.upsert_trades("u1", "s1", [make_trade(price=Decimal("150"))])

        stored = temp_db.get_trades("u1", "s1")

        assert len(stored) == 1
        assert stored[0].price == Decimal("150")

    def test_sessions_are_isolated(self, temp_db: DataStore):
        temp_db.upsert_trades("u1", "s1", [make_trade()])
        temp_db.upsert_trades("u1", "s2", [make_trade()])

        assert len(temp_db.get_trades("u1", "s1")) == 1
        assert len(temp_db.get_trades("u1", "s2")) == 1
        assert temp_db.get_trades("u2", "s1") == []

    def test_upsert_nothing(self, temp_db: DataStore):
        assert temp_db.upsert_trades("u1", "s1", []) == 0


class TestTradeRange:
    """
    **Feature: trade-ledger, Property 23: Half-Open Time Range**

    *For any* range query, trades with start <= time < end are returned
    across all sessions and untimed trades never are.
    """

    def test_range(self, temp_db: DataStore):
        temp_db.upsert_trades(
            "u1",
            "s1",
            [
                make_trade(order_id="1", time="2026-01-01 00:00:00"),
                make_trade(order_id="2", time="2026-01-02 00:00:00"),
                make_trade(order_id="3", time=None),
            ],
        )
        temp_db.upsert_trades(
            "u1", "s2", [make_trade(order_id="4", time="2026-01-01 12:00:00")]
        )

        result = temp_db.get_trades_for_range(
            "u1", datetime(2026, 1, 1), datetime(2026, 1, 2)
        )

        assert [trade.order_id for trade in result] == ["1", "4"]
        assert result[1].session_id == "s2"
