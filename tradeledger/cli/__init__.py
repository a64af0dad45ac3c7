"""CLI commands for TradeLedger.

This package provides the command-line interface for importing trade
exports, browsing the ledger and reporting FIFO PnL.
"""

from tradeledger.cli.main import cli, main

__all__ = ["cli", "main"]
