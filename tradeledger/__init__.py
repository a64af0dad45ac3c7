"""TradeLedger - canonical trade ledger and FIFO PnL from raw trade exports."""

__version__ = "0.1.0"
