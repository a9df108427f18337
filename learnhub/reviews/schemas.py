"""Pydantic schemas for reviews."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Review, ReviewItemType


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateReviewRequest(BaseModel):
    item_type: ReviewItemType
    item_id: UUID
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=200)
    comment: str = Field(..., min_length=1, max_length=5000)
    images: list[str] = Field(default_factory=list, max_length=10)


class UpdateReviewRequest(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    comment: str | None = Field(default=None, min_length=1, max_length=5000)
    images: list[str] | None = Field(default=None, max_length=10)


class ReplyReviewRequest(BaseModel):
    reply_text: str = Field(..., min_length=1, max_length=5000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class ReviewResponse(BaseModel):
    review_id: UUID
    user_id: UUID
    item_type: ReviewItemType
    item_id: UUID
    rating: int
    title: str
    comment: str
    images: list[str] = Field(default_factory=list)
    helpful_count: int = 0
    verified: bool = False
    reply_author_id: UUID | None = None
    reply_text: str | None = None
    replied_at: datetime | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Review) -> "ReviewResponse":
        return cls(**entity.to_dict())


class ReviewStatsResponse(BaseModel):
    """Rating summary for one item."""

    average_rating: float = 0.0
    total_reviews: int = 0
    rating5: int = 0
    rating4: int = 0
    rating3: int = 0
    rating2: int = 0
    rating1: int = 0


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
    page: int
    limit: int
    stats: ReviewStatsResponse | None = None
