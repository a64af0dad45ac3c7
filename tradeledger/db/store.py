"""SQLite ledger store for TradeLedger."""

import logging
import sqlite3
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from tradeledger.exceptions import SessionNotFoundError
from tradeledger.models import Side, TradeRecord, TradeSession
from tradeledger.parsing.normalize import normalize_time

logger = logging.getLogger(__name__)

_TRADE_COLUMNS = (
    "user_id, session_id, symbol, market_type, order_type, side, "
    "quote_amount, quote_asset, price, price_asset, base_amount, base_asset, "
    "fee_amount, fee_asset, trade_time, order_id, trade_id"
)


def _to_storage_time(value: Optional[str]) -> Optional[str]:
    return value.replace(" ", "T", 1) if value else None


def _decimal_or_none(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


class DataStore:
    """SQLite-based store for sessions and their trades."""

    REQUIRED_TABLES = [
        "sessions",
        "trades",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            # Amounts are stored as TEXT to keep Decimal values exact
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    session_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    market_type TEXT NOT NULL,
                    order_type TEXT NOT NULL,
                    side TEXT NOT NULL,
                    quote_amount TEXT NOT NULL,
                    quote_asset TEXT NOT NULL,
                    price TEXT NOT NULL,
                    price_asset TEXT NOT NULL,
                    base_amount TEXT NOT NULL,
                    base_asset TEXT NOT NULL,
                    fee_amount TEXT,
                    fee_asset TEXT,
                    trade_time TEXT,
                    order_id TEXT,
                    trade_id TEXT,
                    UNIQUE(user_id, session_id, order_id, trade_id, trade_time)
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Sessions ====================

    def create_session(self, user_id: str, name: str) -> TradeSession:
        """Create a named session.

        Args:
            user_id: Owner of the session.
            name: Display name.

        Returns:
            The created session.
        """
        session = TradeSession(
            id=uuid.uuid4().hex,
            name=name,
            created_at=datetime.now(),
        )
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO sessions (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
                (session.id, user_id, session.name, session.created_at.isoformat()),
            )
            conn.commit()
            return session
        finally:
            conn.close()

    def get_sessions(self, user_id: str) -> list[TradeSession]:
        """Get a user's sessions, newest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, created_at
                FROM sessions
                WHERE user_id = ?
                ORDER BY created_at DESC
                """,
                (user_id,),
            )
            return [self._row_to_session(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_session(self, user_id: str, session_id: str) -> Optional[TradeSession]:
        """Get a session by ID.

        Returns:
            Session if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, created_at FROM sessions WHERE user_id = ? AND id = ?",
                (user_id, session_id),
            )
            row = cursor.fetchone()
            return self._row_to_session(row) if row else None
        finally:
            conn.close()

    def require_session(self, user_id: str, session_id: str) -> TradeSession:
        """Get a session by ID.

        Raises:
            SessionNotFoundError: If the user has no such session.
        """
        session = self.get_session(user_id, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> TradeSession:
        return TradeSession(
            id=row["id"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Trades ====================

    def upsert_trades(
        self, user_id: str, session_id: str, trades: list[TradeRecord]
    ) -> int:
        """Store trades, updating rows that share order, trade ID and time.

        Args:
            user_id: Owner of the trades.
            session_id: Session the trades belong to.
            trades: Trades to store.

        Returns:
            Number of trades written.
        """
        if not trades:
            return 0

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            for trade in trades:
                cursor.execute(
                    f"""
                    INSERT INTO trades ({_TRADE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, session_id, order_id, trade_id, trade_time)
                    DO UPDATE SET
                        symbol = excluded.symbol,
                        market_type = excluded.market_type,
                        order_type = excluded.order_type,
                        side = excluded.side,
                        quote_amount = excluded.quote_amount,
                        quote_asset = excluded.quote_asset,
                        price = excluded.price,
                        price_asset = excluded.price_asset,
                        base_amount = excluded.base_amount,
                        base_asset = excluded.base_asset,
                        fee_amount = excluded.fee_amount,
                        fee_asset = excluded.fee_asset
                    """,
                    (
                        user_id,
                        session_id,
                        trade.symbol,
                        trade.market_type,
                        trade.order_type,
                        trade.side.value,
                        str(trade.quote_amount),
                        trade.quote_asset,
                        str(trade.price),
                        trade.price_asset,
                        str(trade.base_amount),
                        trade.base_asset,
                        str(trade.fee_amount) if trade.fee_amount is not None else None,
                        trade.fee_asset,
                        _to_storage_time(trade.time),
                        trade.order_id,
                        trade.trade_id,
                    ),
                )
            conn.commit()
        finally:
            conn.close()

        logger.info("Upserted %d trades into session %s", len(trades), session_id)
        return len(trades)

    def get_trades(self, user_id: str, session_id: str) -> list[TradeRecord]:
        """Get all trades of a session, in insertion order."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_TRADE_COLUMNS}
                FROM trades
                WHERE user_id = ? AND session_id = ?
                ORDER BY id
                """,
                (user_id, session_id),
            )
            return [self._row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_trades_for_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[TradeRecord]:
        """Get a user's trades with start <= time < end across all sessions.

        Trades without a time are never returned.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_TRADE_COLUMNS}
                FROM trades
                WHERE user_id = ? AND trade_time >= ? AND trade_time < ?
                ORDER BY trade_time
                """,
                (
                    user_id,
                    start.isoformat(timespec="seconds"),
                    end.isoformat(timespec="seconds"),
                ),
            )
            return [self._row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_trade(row: sqlite3.Row) -> TradeRecord:
        return TradeRecord(
            symbol=row["symbol"],
            market_type=row["market_type"],
            order_type=row["order_type"],
            side=Side(row["side"]),
            quote_amount=Decimal(row["quote_amount"]),
            quote_asset=row["quote_asset"],
            price=Decimal(row["price"]),
            price_asset=row["price_asset"],
            base_amount=Decimal(row["base_amount"]),
            base_asset=row["base_asset"],
            fee_amount=_decimal_or_none(row["fee_amount"]),
            fee_asset=row["fee_asset"],
            time=normalize_time(row["trade_time"]) or None,
            order_id=row["order_id"],
            trade_id=row["trade_id"],
            session_id=row["session_id"],
        )

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
