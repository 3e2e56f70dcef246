"""
SQLite-based receipt store implementation.

Tables:
- receipts: Track uploaded receipts and their extraction status
- expenses: Expenses saved after review (optionally linked to a receipt)
"""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Optional

from ..schemas.receipt import ExtractedReceiptData, validate_category

DEFAULT_EXPENSE_DESCRIPTION = "Receipt Expense"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ReceiptStatus(str, Enum):
    """Status of a receipt upload."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReceiptStatus.COMPLETED, ReceiptStatus.FAILED)


@dataclass
class ReceiptRecord:
    """Record of an uploaded receipt."""

    id: int
    owner: str
    image_url: str | None
    status: ReceiptStatus
    extracted: ExtractedReceiptData | None
    error_message: str | None
    created_at: str  # ISO timestamp
    updated_at: str  # ISO timestamp

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ReceiptRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            owner=row["owner"],
            image_url=row["image_url"],
            status=ReceiptStatus(row["status"]),
            extracted=(
                ExtractedReceiptData.from_dict(json.loads(row["extracted_json"]))
                if row["extracted_json"]
                else None
            ),
            error_message=row["error_message"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass
class ExpenseRecord:
    """An expense saved after the user reviewed an extraction."""

    owner: str
    amount: Decimal
    category: str
    date: str  # ISO format YYYY-MM-DD
    description: str
    receipt_id: int | None = None
    id: int | None = None
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ExpenseRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            owner=row["owner"],
            amount=Decimal(row["amount"]),
            category=row["category"],
            date=row["date"],
            description=row["description"],
            receipt_id=row["receipt_id"],
            created_at=row["created_at"],
        )

    @classmethod
    def from_extraction(
        cls,
        owner: str,
        data: ExtractedReceiptData,
        receipt_id: int | None = None,
        today: Optional[date] = None,
    ) -> "ExpenseRecord":
        """
        Build the expense the user is about to save.

        A missing or unparseable total becomes 0, a missing merchant becomes
        the generic description, and a date that is not valid ISO falls back
        to today.
        """
        try:
            amount = Decimal(data.total) if data.total else Decimal("0")
        except InvalidOperation:
            amount = Decimal("0")

        try:
            expense_date = date.fromisoformat(data.date).isoformat()
        except ValueError:
            expense_date = (today or date.today()).isoformat()

        return cls(
            owner=owner,
            amount=amount,
            category=validate_category(data.category),
            date=expense_date,
            description=data.merchant or DEFAULT_EXPENSE_DESCRIPTION,
            receipt_id=receipt_id,
        )


class ReceiptStore:
    """
    SQLite-based store for receipts and expenses.

    Every read is scoped to an owner where records belong to one.
    Thread-safe for single-writer scenarios (one connection per operation).
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str):
        """
        Initialize receipt store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS receipts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner TEXT NOT NULL,
                    image_url TEXT,
                    status TEXT NOT NULL,
                    extracted_json TEXT,
                    error_message TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS expenses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner TEXT NOT NULL,
                    amount TEXT NOT NULL,  -- Decimal as string
                    category TEXT NOT NULL,
                    date TEXT NOT NULL,
                    description TEXT NOT NULL,
                    receipt_id INTEGER,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (receipt_id) REFERENCES receipts(id)
                )
            """
            )

            conn.execute("CREATE INDEX IF NOT EXISTS idx_receipts_owner ON receipts(owner)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_expenses_owner ON expenses(owner, date)")

            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def create_receipt(
        self,
        owner: str,
        image_url: str | None = None,
        status: ReceiptStatus = ReceiptStatus.UPLOADING,
    ) -> int:
        """Create a receipt record and return its ID."""
        now = _now_iso()
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO receipts (owner, image_url, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (owner, image_url, status.value, now, now),
            )
            return cursor.lastrowid

    def update_receipt_status(
        self,
        receipt_id: int,
        status: ReceiptStatus,
        extracted: ExtractedReceiptData | None = None,
        error_message: str | None = None,
        image_url: str | None = None,
    ) -> None:
        """
        Move a receipt to a new status.

        Extracted data and image URL are only overwritten when given.

        Raises:
            KeyError: If the receipt does not exist
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE receipts SET
                    status = ?,
                    extracted_json = COALESCE(?, extracted_json),
                    error_message = ?,
                    image_url = COALESCE(?, image_url),
                    updated_at = ?
                WHERE id = ?
            """,
                (
                    status.value,
                    json.dumps(extracted.to_dict()) if extracted else None,
                    error_message,
                    image_url,
                    _now_iso(),
                    receipt_id,
                ),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Receipt {receipt_id} not found")

    def get_receipt(self, receipt_id: int) -> ReceiptRecord | None:
        """Get a receipt by ID."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM receipts WHERE id = ?", (receipt_id,)).fetchone()
            return ReceiptRecord.from_row(row) if row else None

    def list_receipts(
        self, owner: str, status: ReceiptStatus | None = None
    ) -> list[ReceiptRecord]:
        """List an owner's receipts, newest first."""
        query = "SELECT * FROM receipts WHERE owner = ?"
        params: list = [owner]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY created_at DESC, id DESC"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [ReceiptRecord.from_row(row) for row in rows]

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def save_expense(self, expense: ExpenseRecord) -> int:
        """Persist an expense and return its ID."""
        validate_category(expense.category)
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO expenses
                    (owner, amount, category, date, description, receipt_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    expense.owner,
                    str(expense.amount),
                    expense.category,
                    expense.date,
                    expense.description,
                    expense.receipt_id,
                    expense.created_at,
                ),
            )
            expense.id = cursor.lastrowid
            return expense.id

    def get_expense(self, expense_id: int) -> ExpenseRecord | None:
        """Get an expense by ID."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM expenses WHERE id = ?", (expense_id,)).fetchone()
            return ExpenseRecord.from_row(row) if row else None

    def list_expenses(self, owner: str, category: str | None = None) -> list[ExpenseRecord]:
        """List an owner's expenses, most recent date first."""
        query = "SELECT * FROM expenses WHERE owner = ?"
        params: list = [owner]
        if category is not None:
            query += " AND category = ?"
            params.append(validate_category(category))
        query += " ORDER BY date DESC, id DESC"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [ExpenseRecord.from_row(row) for row in rows]
