"""
Receipt Store (SQLite-based).

Lightweight persistent DB for tracking:
- Receipt uploads and their extraction status
- Expenses saved after review
"""

from .sqlite_store import (
    DEFAULT_EXPENSE_DESCRIPTION,
    ExpenseRecord,
    ReceiptRecord,
    ReceiptStatus,
    ReceiptStore,
)

__all__ = [
    "DEFAULT_EXPENSE_DESCRIPTION",
    "ExpenseRecord",
    "ReceiptRecord",
    "ReceiptStatus",
    "ReceiptStore",
]
