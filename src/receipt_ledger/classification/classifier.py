"""
Keyword-based spending category classification.

The keyword table is an ordered sequence, not a mapping: when text hits
keywords of several categories, the category declared first wins.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from ..schemas.receipt import DEFAULT_CATEGORY, EXPENSE_CATEGORIES

logger = logging.getLogger(__name__)

KeywordTable = Sequence[tuple[str, Sequence[str]]]

# Declaration order is the tie-break ("gas" → Transportation, "market" → Shopping)
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Food & Dining", ("restaurant", "cafe", "coffee", "diner", "bistro", "food")),
    ("Transportation", ("gas", "fuel", "uber", "lyft", "taxi", "transit", "parking")),
    ("Shopping", ("mall", "store", "retail", "market", "shop", "boutique")),
    ("Entertainment", ("cinema", "movie", "theater", "concert", "show")),
    ("Bills & Utilities", ("utility", "electric", "water", "gas", "internet", "phone")),
    ("Healthcare", ("pharmacy", "doctor", "medical", "clinic", "hospital", "drug")),
    ("Travel", ("hotel", "airline", "flight", "booking", "travel")),
    ("Groceries", ("grocery", "supermarket", "market", "foods", "wholesale")),
)


def classify(
    merchant: Optional[str],
    text: Optional[str],
    table: KeywordTable = CATEGORY_KEYWORDS,
) -> str:
    """
    Pick the first category whose keywords occur in merchant + text.

    Matching is case-insensitive substring search. Returns "Other" when
    nothing matches.
    """
    haystack = f"{merchant or ''} {text or ''}".lower()

    for category, keywords in table:
        for keyword in keywords:
            if keyword in haystack:
                logger.debug("Category %r matched keyword %r", category, keyword)
                return category

    return DEFAULT_CATEGORY


class CategoryClassifier:
    """
    Classifier bound to one ordered keyword table.

    Stateless apart from the table, so a single instance can be shared by
    concurrent pipeline runs.
    """

    def __init__(self, table: Optional[KeywordTable] = None):
        table = CATEGORY_KEYWORDS if table is None else table
        self.table: tuple[tuple[str, tuple[str, ...]], ...] = tuple(
            (category, tuple(keyword.lower() for keyword in keywords))
            for category, keywords in table
        )
        self._validate()

    def _validate(self) -> None:
        for category, keywords in self.table:
            if category not in EXPENSE_CATEGORIES:
                raise ValueError(f"Unknown category in keyword table: {category!r}")
            if any(not keyword for keyword in keywords):
                raise ValueError(f"Empty keyword for category {category!r}")

    def classify(self, merchant: Optional[str], text: Optional[str]) -> str:
        return classify(merchant, text, self.table)
