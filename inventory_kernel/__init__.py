"""
Inventory Kernel - stock ledger core

A versioned, append-only stock ledger with:
- Optimistic concurrency on every stock record
- Append-only movement journal
- Low-stock, expiry, overstock and discrepancy alerting
- Recoverable two-leg transfers
"""

__version__ = "0.1.0"
