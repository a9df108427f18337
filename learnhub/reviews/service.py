# ruff: noqa: S608
"""Review service layer.

Business logic for:
- One review per author and item
- Author-only edits and deletion
- Helpful votes and staff replies
- Rating statistics per item
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from learnhub.utils import ensure_utc_aware, page_offset

from .models import Review, ReviewItemType, summarize_ratings


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ReviewNotFoundError(NotFoundError):
    def __init__(self, message: str = "Review not found"):
        super().__init__(message, "review_not_found")


class AlreadyReviewedError(ConflictError):
    def __init__(self, message: str = "You have already reviewed this item"):
        super().__init__(message, "already_reviewed")


class NotReviewAuthorError(ForbiddenError):
    def __init__(self, message: str = "You can only modify your own reviews"):
        super().__init__(message, "not_review_author")


# ==============================================================================
# Review Service
# ==============================================================================


class ReviewService:
    """Service for reviews, votes and rating stats."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_review = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews WHERE review_id = ?
        """)

        self._insert_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.reviews
            (review_id, user_id, item_type, item_id, rating, title, comment,
             images, helpful, verified, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, {{}}, ?, ?, ?, ?)
        """)

        self._update_review = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews
            SET rating = ?, title = ?, comment = ?, images = ?, updated_at = ?
            WHERE review_id = ?
        """)

        self._delete_review = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.reviews WHERE review_id = ?
        """)

        self._add_helpful = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews SET helpful = helpful + ?
            WHERE review_id = ?
        """)

        self._remove_helpful = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews SET helpful = helpful - ?
            WHERE review_id = ?
        """)

        self._set_reply = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews
            SET reply_author_id = ?, reply_text = ?, replied_at = ?
            WHERE review_id = ?
        """)

        # Item listing
        self._insert_item_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.reviews_by_item
            (item_type, item_id, created_at, review_id, user_id, rating, is_active)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._update_item_rating = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews_by_item SET rating = ?
            WHERE item_type = ? AND item_id = ? AND created_at = ? AND review_id = ?
        """)

        self._delete_item_review = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.reviews_by_item
            WHERE item_type = ? AND item_id = ? AND created_at = ? AND review_id = ?
        """)

        self._get_item_reviews = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews_by_item
            WHERE item_type = ? AND item_id = ?
        """)

        # Author uniqueness and listing
        self._claim_user_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.reviews_by_user
            (user_id, item_type, item_id, review_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_user_review = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.reviews_by_user
            WHERE user_id = ? AND item_type = ? AND item_id = ?
            IF EXISTS
        """)

        self._get_user_reviews = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews_by_user WHERE user_id = ?
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def find_review(self, review_id: UUID) -> Review | None:
        result = await self.session.aexecute(self._get_review, [review_id])
        row = result.one()
        return Review.from_row(row) if row else None

    async def get_review(self, review_id: UUID) -> Review:
        """Get a review by ID.

        Raises:
            ReviewNotFoundError: If the review does not exist
        """
        review = await self.find_review(review_id)
        if review is None:
            raise ReviewNotFoundError
        return review

    async def _get_owned_review(self, review_id: UUID, user_id: UUID) -> Review:
        review = await self.get_review(review_id)
        if review.user_id != user_id:
            raise NotReviewAuthorError
        return review

    async def _load_reviews(self, review_ids: list[UUID]) -> list[Review]:
        reviews = []
        for review_id in review_ids:
            review = await self.find_review(review_id)
            if review is not None:
                reviews.append(review)
        return reviews

    # ==========================================================================
    # Create / Update / Delete
    # ==========================================================================

    async def create_review(
        self,
        user_id: UUID,
        item_type: ReviewItemType,
        item_id: UUID,
        rating: int,
        title: str,
        comment: str,
        images: list[str] | None = None,
    ) -> Review:
        """Create a review.

        Raises:
            AlreadyReviewedError: If the user already reviewed this item
        """
        review = Review(
            user_id=user_id,
            item_type=ReviewItemType(item_type).value,
            item_id=item_id,
            rating=rating,
            title=title.strip(),
            comment=comment,
            images=images,
        )

        claim = await self.session.aexecute(
            self._claim_user_review,
            [user_id, review.item_type, item_id, review.review_id, review.created_at],
        )
        if not claim.was_applied:
            raise AlreadyReviewedError

        await self.session.aexecute(
            self._insert_review,
            [
                review.review_id,
                review.user_id,
                review.item_type,
                review.item_id,
                review.rating,
                review.title,
                review.comment,
                review.images,
                review.verified,
                review.is_active,
                review.created_at,
                review.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_item_review,
            [
                review.item_type,
                review.item_id,
                review.created_at,
                review.review_id,
                review.user_id,
                review.rating,
                review.is_active,
            ],
        )

        logger.info(
            "review_created",
            review_id=str(review.review_id),
            item_type=review.item_type,
            item_id=str(item_id),
            rating=rating,
        )
        return review

    async def update_review(
        self,
        review_id: UUID,
        user_id: UUID,
        rating: int | None = None,
        title: str | None = None,
        comment: str | None = None,
        images: list[str] | None = None,
    ) -> Review:
        """Update the caller's own review.

        Raises:
            ReviewNotFoundError: If the review does not exist
            NotReviewAuthorError: If the caller did not write it
        """
        review = await self._get_owned_review(review_id, user_id)

        if rating is not None:
            review.rating = rating
        if title is not None:
            review.title = title.strip()
        if comment is not None:
            review.comment = comment
        if images is not None:
            review.images = list(images)
        review.updated_at = datetime.now(UTC)

        await self.session.aexecute(
            self._update_review,
            [
                review.rating,
                review.title,
                review.comment,
                review.images,
                review.updated_at,
                review_id,
            ],
        )
        if rating is not None:
            await self.session.aexecute(
                self._update_item_rating,
                [
                    review.rating,
                    review.item_type,
                    review.item_id,
                    review.created_at,
                    review_id,
                ],
            )

        logger.info("review_updated", review_id=str(review_id))
        return review

    async def delete_review(self, review_id: UUID, user_id: UUID) -> None:
        """Delete the caller's own review.

        Raises:
            ReviewNotFoundError: If the review does not exist
            NotReviewAuthorError: If the caller did not write it
        """
        review = await self._get_owned_review(review_id, user_id)

        await self.session.aexecute(
            self._delete_item_review,
            [review.item_type, review.item_id, review.created_at, review_id],
        )
        await self.session.aexecute(
            self._delete_user_review,
            [review.user_id, review.item_type, review.item_id],
        )
        await self.session.aexecute(self._delete_review, [review_id])

        logger.info("review_deleted", review_id=str(review_id))

    # ==========================================================================
    # Votes and Replies
    # ==========================================================================

    async def toggle_helpful(self, review_id: UUID, user_id: UUID) -> Review:
        """Add the caller's helpful vote, or remove it if already present."""
        review = await self.get_review(review_id)

        if user_id in review.helpful:
            await self.session.aexecute(self._remove_helpful, [{user_id}, review_id])
            review.helpful.discard(user_id)
        else:
            await self.session.aexecute(self._add_helpful, [{user_id}, review_id])
            review.helpful.add(user_id)
        return review

    async def reply_to_review(
        self, review_id: UUID, author_id: UUID, reply_text: str
    ) -> Review:
        """Attach an instructor or admin reply, replacing any earlier one."""
        review = await self.get_review(review_id)

        review.reply_author_id = author_id
        review.reply_text = reply_text
        review.replied_at = datetime.now(UTC)

        await self.session.aexecute(
            self._set_reply,
            [review.reply_author_id, review.reply_text, review.replied_at, review_id],
        )
        logger.info(
            "review_replied", review_id=str(review_id), author_id=str(author_id)
        )
        return review

    # ==========================================================================
    # Listings and Statistics
    # ==========================================================================

    async def _active_item_rows(
        self, item_type: ReviewItemType, item_id: UUID
    ) -> list[Any]:
        rows = await self.session.aexecute(
            self._get_item_reviews, [ReviewItemType(item_type).value, item_id]
        )
        return [row for row in rows if row.is_active is not False]

    async def get_review_stats(
        self, item_type: ReviewItemType, item_id: UUID
    ) -> dict[str, Any]:
        """Average rating, total and per-star counts over active reviews."""
        rows = await self._active_item_rows(item_type, item_id)
        return summarize_ratings([row.rating for row in rows])

    async def list_item_reviews(
        self,
        item_type: ReviewItemType,
        item_id: UUID,
        rating: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """Page through an item's active reviews, newest first.

        Returns:
            Dict with items, total (after the rating filter) and item stats
        """
        rows = await self._active_item_rows(item_type, item_id)
        stats = summarize_ratings([row.rating for row in rows])

        if rating is not None:
            rows = [row for row in rows if row.rating == rating]

        offset = page_offset(page, limit)
        page_rows = rows[offset : offset + limit]
        return {
            "items": await self._load_reviews([row.review_id for row in page_rows]),
            "total": len(rows),
            "stats": stats,
        }

    async def list_user_reviews(
        self, user_id: UUID, page: int = 1, limit: int = 10
    ) -> tuple[list[Review], int]:
        """Page through a user's reviews, newest first."""
        rows = list(await self.session.aexecute(self._get_user_reviews, [user_id]))
        epoch = datetime.min.replace(tzinfo=UTC)
        rows.sort(
            key=lambda row: ensure_utc_aware(row.created_at) or epoch, reverse=True
        )

        offset = page_offset(page, limit)
        page_rows = rows[offset : offset + limit]
        items = await self._load_reviews([row.review_id for row in page_rows])
        return items, len(rows)
