"""Database models for reviews.

Cassandra table definitions for:
- Reviews: full review by ID
- Reviews by item: newest-first listing and rating stats per reviewed item
- Reviews by user: one row per (author, item), enforcing a single review
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware


class ReviewItemType(str, Enum):
    COURSE = "course"
    PRODUCT = "product"


RATING_VALUES = (1, 2, 3, 4, 5)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

REVIEWS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.reviews (
    review_id UUID PRIMARY KEY,
    user_id UUID,
    item_type TEXT,
    item_id UUID,
    rating INT,
    title TEXT,
    comment TEXT,
    images LIST<TEXT>,
    helpful SET<UUID>,
    verified BOOLEAN,
    reply_author_id UUID,
    reply_text TEXT,
    replied_at TIMESTAMP,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Partition per reviewed item, newest first
REVIEWS_BY_ITEM_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.reviews_by_item (
    item_type TEXT,
    item_id UUID,
    created_at TIMESTAMP,
    review_id UUID,
    user_id UUID,
    rating INT,
    is_active BOOLEAN,
    PRIMARY KEY ((item_type, item_id), created_at, review_id)
) WITH CLUSTERING ORDER BY (created_at DESC, review_id ASC)
"""

# Uniqueness guard: INSERT ... IF NOT EXISTS on (user, item)
REVIEWS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.reviews_by_user (
    user_id UUID,
    item_type TEXT,
    item_id UUID,
    review_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), item_type, item_id)
)
"""

REVIEWS_TABLES_CQL = [
    REVIEWS_TABLE_CQL,
    REVIEWS_BY_ITEM_TABLE_CQL,
    REVIEWS_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Review:
    """A user's rating and comment on a course or product."""

    def __init__(
        self,
        user_id: UUID,
        item_type: str,
        item_id: UUID,
        rating: int,
        title: str,
        comment: str,
        review_id: UUID | None = None,
        images: list[str] | None = None,
        helpful: set[UUID] | None = None,
        verified: bool = False,
        reply_author_id: UUID | None = None,
        reply_text: str | None = None,
        replied_at: datetime | None = None,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.review_id = review_id or uuid4()
        self.user_id = user_id
        self.item_type = item_type
        self.item_id = item_id
        self.rating = rating
        self.title = title
        self.comment = comment
        self.images = list(images or [])
        self.helpful = set(helpful or ())
        self.verified = verified
        self.reply_author_id = reply_author_id
        self.reply_text = reply_text
        self.replied_at = ensure_utc_aware(replied_at)
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now

    @classmethod
    def from_row(cls, row: Any) -> "Review":
        """Create Review instance from Cassandra row."""
        return cls(
            review_id=row.review_id,
            user_id=row.user_id,
            item_type=row.item_type,
            item_id=row.item_id,
            rating=row.rating,
            title=row.title or "",
            comment=row.comment or "",
            images=row.images,
            helpful=row.helpful,
            verified=bool(row.verified),
            reply_author_id=row.reply_author_id,
            reply_text=row.reply_text,
            replied_at=row.replied_at,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "review_id": self.review_id,
            "user_id": self.user_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "rating": self.rating,
            "title": self.title,
            "comment": self.comment,
            "images": self.images,
            "helpful_count": len(self.helpful),
            "verified": self.verified,
            "reply_author_id": self.reply_author_id,
            "reply_text": self.reply_text,
            "replied_at": self.replied_at,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Review {self.review_id} {self.item_type}:{self.item_id} "
            f"{self.rating}*>"
        )


def summarize_ratings(ratings: list[int]) -> dict[str, Any]:
    """Average, count and per-star histogram; zeros for no ratings."""
    total = len(ratings)
    counts = {f"rating{value}": ratings.count(value) for value in RATING_VALUES}
    return {
        "average_rating": sum(ratings) / total if total else 0.0,
        "total_reviews": total,
        **counts,
    }
