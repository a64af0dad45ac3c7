"""Local persistence for TradeLedger."""
