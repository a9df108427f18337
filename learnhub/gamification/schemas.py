"""Pydantic schemas for gamification."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import LeaderboardEntry, PointActivityType, PointTransaction, UserPoints


# ==============================================================================
# Request Schemas
# ==============================================================================


class AwardPointsRequest(BaseModel):
    """Award the fixed points for an activity to a user."""

    user_id: UUID = Field(..., description="User receiving the points")
    activity_type: PointActivityType
    reference_id: str | None = Field(
        default=None, max_length=64, description="ID of the source entity"
    )
    reference_type: str | None = Field(
        default=None, max_length=32, description="Kind of the source entity"
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserPointsResponse(BaseModel):
    user_id: UUID
    total_points: int
    level: int
    current_streak: int
    longest_streak: int
    last_activity_at: datetime | None = None
    courses_completed: int
    quizzes_passed: int
    assignments_completed: int
    badges: list[UUID] = Field(default_factory=list)
    achievements: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: UserPoints) -> "UserPointsResponse":
        return cls(**entity.to_dict())


class PointTransactionResponse(BaseModel):
    transaction_id: UUID
    user_id: UUID
    activity_type: str
    points: int
    description: str
    reference_id: str | None = None
    reference_type: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: PointTransaction) -> "PointTransactionResponse":
        return cls(**entity.to_dict())


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: UUID
    total_points: int
    level: int

    @classmethod
    def from_entity(cls, entity: LeaderboardEntry) -> "LeaderboardEntryResponse":
        return cls(**entity.to_dict())
