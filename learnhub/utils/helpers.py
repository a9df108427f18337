"""Small helpers shared across domain modules."""

import math
import re
import unicodedata
from datetime import UTC, datetime


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``), which
    would make 1 of 8 lessons show as 12% instead of 13%.
    """
    return math.floor(value + 0.5)


def generate_slug(text: str) -> str:
    """Generate a URL-friendly slug from text.

    Strips accents, lowercases, drops punctuation and collapses whitespace
    and dashes into single dashes.
    """
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    return text.strip("-")


def page_offset(page: int, limit: int) -> int:
    """Offset of the first item on a 1-based page."""
    return (max(page, 1) - 1) * limit


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)
