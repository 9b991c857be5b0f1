"""Weekly mail inventory ledger and carry-over reporting."""

__version__ = "0.1.0"
