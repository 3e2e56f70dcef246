"""
Receipt field extraction from recognized text.

A few high-precision patterns, no layout analysis. A pattern that does
not match leaves its field absent; nothing here raises on bad input.

Supported formats:
- Totals: "Total: $12.34", "Grand Total 12.34", "Amount Due: €12.34"
- Dates: d.m.y, d/m/Y, d-m-Y (1-2 digit day/month), Y-m-d, Y/m/d, Y.m.d
- Merchant: the leading letters-and-spaces run of the first line
"""

import re

from ..schemas.receipt import FieldMatches

# Label alternation in preference order; leftmost occurrence in the text wins
TOTAL_LABELS = (
    "total amount",
    "amount due",
    "grand total",
    "final amount",
    "total",
    "amount",
)

CURRENCY_SYMBOLS = "$€£₹"

TOTAL_PATTERN = re.compile(
    r"(?:"
    + "|".join(re.escape(label) for label in TOTAL_LABELS)
    + r")[:\s]*["
    + re.escape(CURRENCY_SYMBOLS)
    + r"]?\s*(\d+\.?\d*)",
    re.IGNORECASE,
)

DATE_PATTERN = re.compile(
    r"(\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})"  # 04.07.23, 4/7/2023
    r"|(\d{4}[-/.]\d{1,2}[-/.]\d{1,2})"  # 2023-07-04
)

# Letters (including apostrophes, as in "Joe's") and spaces on the first line
MERCHANT_PATTERN = re.compile(r"\A\s*([A-Za-z'’][A-Za-z'’ \t]*)")


def extract_total(text: str) -> str | None:
    """Numeric part of the first labelled total, e.g. "12.34"."""
    match = TOTAL_PATTERN.search(text)
    return match.group(1) if match else None


def extract_date_token(text: str) -> str | None:
    """First date-looking token in document order, unparsed."""
    match = DATE_PATTERN.search(text)
    return match.group(0) if match else None


def extract_merchant(text: str) -> str | None:
    """Leading run of letters and spaces, trimmed. None if the text starts otherwise."""
    match = MERCHANT_PATTERN.match(text)
    if not match:
        return None
    merchant = match.group(1).strip()
    if not re.search(r"[A-Za-z]", merchant):
        return None
    return merchant


def extract_fields(text: str) -> FieldMatches:
    """Run all field patterns over recognized text."""
    return FieldMatches(
        total=extract_total(text),
        date_token=extract_date_token(text),
        merchant=extract_merchant(text),
    )
