"""Exceptions raised by TradeLedger collaborators."""


class TradeLedgerError(Exception):
    """Base class for TradeLedger errors."""


class PriceFetchError(TradeLedgerError):
    """Raised when a spot price cannot be fetched."""

    def __init__(self, symbol: str, message: str):
        super().__init__(f"{symbol}: {message}")
        self.symbol = symbol


class SessionNotFoundError(TradeLedgerError):
    """Raised when a session ID does not exist for the user."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
