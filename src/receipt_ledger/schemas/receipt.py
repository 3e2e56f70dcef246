"""
Canonical receipt extraction objects.

ExtractedReceiptData is the pipeline's only output type; the other types
are the hand-offs between pipeline stages.
"""

import mimetypes
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

# Closed set of spending categories, in display order
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Travel",
    "Groceries",
    "Other",
)

DEFAULT_CATEGORY = "Other"
UNKNOWN_MERCHANT = "Unknown Merchant"


def validate_category(category: str) -> str:
    """Return the category unchanged, or raise ValueError if it is not a known label."""
    if category not in EXPENSE_CATEGORIES:
        raise ValueError(
            f"Unknown category {category!r} (expected one of: {', '.join(EXPENSE_CATEGORIES)})"
        )
    return category


@dataclass(frozen=True)
class RawImage:
    """Photographed receipt bytes as handed over by the caller."""

    data: bytes
    media_type: str = "image/jpeg"

    @classmethod
    def from_path(cls, path: Path | str) -> "RawImage":
        """Read an image file, guessing the media type from its suffix."""
        path = Path(path)
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(data=path.read_bytes(), media_type=media_type)


@dataclass(frozen=True)
class NormalizedImage:
    """
    Recognition-ready image.

    Single-channel greyscale, contrast-adjusted, resized to the target
    width with the aspect ratio preserved. Encoded as PNG.
    """

    data: bytes
    width: int
    height: int
    mode: str = "L"
    media_type: str = "image/png"


@dataclass(frozen=True)
class FieldMatches:
    """Raw pattern matches from recognized text. Nothing is validated yet."""

    total: Optional[str] = None
    date_token: Optional[str] = None
    merchant: Optional[str] = None


@dataclass(frozen=True)
class ExtractedReceiptData:
    """
    Best-effort structured receipt.

    date and category are always populated. total and merchant may be
    absent (or wrong); the user reviews them before saving.
    """

    date: str  # ISO format YYYY-MM-DD
    category: str
    total: Optional[str] = None  # Decimal string exactly as matched, e.g. "8.50"
    merchant: Optional[str] = None

    def __post_init__(self) -> None:
        validate_category(self.category)

    def with_category(self, category: str) -> "ExtractedReceiptData":
        """Return a copy with the category replaced by the caller's choice."""
        return replace(self, category=validate_category(category))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict. Absent fields are omitted."""
        data: dict[str, Any] = {}
        if self.total is not None:
            data["total"] = self.total
        data["date"] = self.date
        if self.merchant is not None:
            data["merchant"] = self.merchant
        data["category"] = self.category
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractedReceiptData":
        return cls(
            date=data["date"],
            category=data.get("category", DEFAULT_CATEGORY),
            total=data.get("total"),
            merchant=data.get("merchant"),
        )
