"""
Date token normalization.

Converts the matched date token to YYYY-MM-DD. An absent or unparseable
token yields today's date instead of an error; the fallback is logged.
"""

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional

logger = logging.getLogger(__name__)

# Day-month-year with a two-digit year, e.g. 04.07.23
DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%d.%m.%y",)


def parse_date_token(token: str, formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> Optional[date]:
    """Parse a token against each format in order; None if none fits the whole token."""
    token = token.strip()
    for date_format in formats:
        try:
            return datetime.strptime(token, date_format).date()
        except ValueError:
            continue
    return None


def normalize_date(
    token: Optional[str],
    formats: Sequence[str] = DEFAULT_DATE_FORMATS,
    today: Optional[date] = None,
) -> str:
    """
    Canonicalize a date token, falling back to today.

    Args:
        token: Date token from the field extractor (or None)
        formats: strptime formats tried in order
        today: Fallback date (defaults to the current local date)

    Returns:
        ISO date string YYYY-MM-DD (never raises)
    """
    fallback = today or date.today()

    if not token:
        logger.debug("No date token found, using %s", fallback.isoformat())
        return fallback.isoformat()

    parsed = parse_date_token(token, formats)
    if parsed is None:
        logger.warning(
            "Could not parse date token %r with formats %s, using %s",
            token,
            list(formats),
            fallback.isoformat(),
        )
        return fallback.isoformat()

    return parsed.isoformat()
