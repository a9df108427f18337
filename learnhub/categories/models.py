"""Database models for course categories.

Categories are keyed by slug; the slug is derived from the name, so two
names that slugify alike are the same category.
"""

from datetime import UTC, datetime
from typing import Any

from learnhub.utils import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Small catalogue table, read in full for listings
COURSE_CATEGORIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_categories (
    slug TEXT PRIMARY KEY,
    name TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CATEGORIES_TABLES_CQL = [
    COURSE_CATEGORIES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class CourseCategory:
    def __init__(
        self,
        slug: str,
        name: str,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.slug = slug
        self.name = name
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now

    @classmethod
    def from_row(cls, row: Any) -> "CourseCategory":
        return cls(
            slug=row.slug,
            name=row.name,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<CourseCategory {self.slug}>"
