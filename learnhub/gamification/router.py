"""Gamification API endpoints.

Provides routes for:
- Own points and transaction history
- Public leaderboard
- Staff awards and admin ledger rebuilds
"""

from uuid import UUID

from fastapi import APIRouter, Query

from learnhub.auth.dependencies import AdminUser, CurrentUser, StaffUser
from learnhub.config import get_settings
from learnhub.core.exceptions import ServiceError

from .dependencies import GamificationServiceDep, handle_gamification_error
from .schemas import (
    AwardPointsRequest,
    LeaderboardEntryResponse,
    PointTransactionResponse,
    UserPointsResponse,
)


router = APIRouter(prefix="/v1/gamification", tags=["gamification"])


@router.get("/my-points", response_model=UserPointsResponse)
async def get_my_points(
    service: GamificationServiceDep,
    user: CurrentUser,
) -> UserPointsResponse:
    """Own points record; created empty on first access."""
    return UserPointsResponse.from_entity(await service.get_user_points(user.id))


@router.get("/my-transactions", response_model=list[PointTransactionResponse])
async def get_my_transactions(
    service: GamificationServiceDep,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=100),
) -> list[PointTransactionResponse]:
    transactions = await service.get_transactions(user.id, limit=limit)
    return [PointTransactionResponse.from_entity(t) for t in transactions]


@router.get("/leaderboard", response_model=list[LeaderboardEntryResponse])
async def get_leaderboard(
    service: GamificationServiceDep,
    limit: int | None = Query(None, ge=1, le=100),
) -> list[LeaderboardEntryResponse]:
    """Top users by total points."""
    limit = limit or get_settings().leaderboard_default_limit
    entries = await service.get_leaderboard(limit=limit)
    return [LeaderboardEntryResponse.from_entity(e) for e in entries]


@router.post(
    "/award",
    response_model=UserPointsResponse,
    summary="Award points for an activity (instructors and admins)",
)
async def award_points(
    data: AwardPointsRequest,
    service: GamificationServiceDep,
    _staff: StaffUser,
) -> UserPointsResponse:
    try:
        user_points = await service.award_points(
            user_id=data.user_id,
            activity_type=data.activity_type,
            reference_id=data.reference_id,
            reference_type=data.reference_type,
        )
        return UserPointsResponse.from_entity(user_points)
    except ServiceError as e:
        raise handle_gamification_error(e) from e


@router.post("/users/{user_id}/rebuild", response_model=UserPointsResponse)
async def rebuild_user_points(
    user_id: UUID,
    service: GamificationServiceDep,
    _admin: AdminUser,
) -> UserPointsResponse:
    """Recompute a user's total and level from their transaction ledger."""
    try:
        return UserPointsResponse.from_entity(
            await service.rebuild_user_points(user_id)
        )
    except ServiceError as e:
        raise handle_gamification_error(e) from e
