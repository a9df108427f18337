"""Shared helpers."""

from learnhub.utils.helpers import (
    ensure_utc_aware,
    generate_slug,
    page_offset,
    round_half_up,
    total_pages,
)


__all__ = [
    "ensure_utc_aware",
    "generate_slug",
    "page_offset",
    "round_half_up",
    "total_pages",
]
