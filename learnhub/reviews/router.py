"""Review API endpoints.

Provides routes for:
- Creating, editing and deleting own reviews
- Public listings and rating stats per item
- Helpful votes and instructor replies
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import CurrentUser, StaffUser
from learnhub.core.exceptions import ServiceError

from .dependencies import ReviewServiceDep, handle_review_error
from .models import ReviewItemType
from .schemas import (
    CreateReviewRequest,
    ReplyReviewRequest,
    ReviewListResponse,
    ReviewResponse,
    ReviewStatsResponse,
    UpdateReviewRequest,
)


router = APIRouter(prefix="/v1/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: CreateReviewRequest,
    service: ReviewServiceDep,
    user: CurrentUser,
) -> ReviewResponse:
    try:
        review = await service.create_review(
            user_id=user.id,
            item_type=data.item_type,
            item_id=data.item_id,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
            images=data.images,
        )
        return ReviewResponse.from_entity(review)
    except ServiceError as e:
        raise handle_review_error(e) from e


@router.get("", response_model=ReviewListResponse)
async def list_item_reviews(
    service: ReviewServiceDep,
    item_type: ReviewItemType = Query(...),
    item_id: UUID = Query(...),
    rating: int | None = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ReviewListResponse:
    """Active reviews of an item, newest first, with its rating stats."""
    result = await service.list_item_reviews(
        item_type, item_id, rating=rating, page=page, limit=limit
    )
    return ReviewListResponse(
        items=[ReviewResponse.from_entity(r) for r in result["items"]],
        total=result["total"],
        page=page,
        limit=limit,
        stats=ReviewStatsResponse(**result["stats"]),
    )


@router.get("/my-reviews", response_model=ReviewListResponse)
async def list_my_reviews(
    service: ReviewServiceDep,
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ReviewListResponse:
    items, total = await service.list_user_reviews(user.id, page=page, limit=limit)
    return ReviewListResponse(
        items=[ReviewResponse.from_entity(r) for r in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats/{item_type}/{item_id}", response_model=ReviewStatsResponse)
async def get_review_stats(
    item_type: ReviewItemType,
    item_id: UUID,
    service: ReviewServiceDep,
) -> ReviewStatsResponse:
    return ReviewStatsResponse(**await service.get_review_stats(item_type, item_id))


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: UUID, service: ReviewServiceDep) -> ReviewResponse:
    try:
        return ReviewResponse.from_entity(await service.get_review(review_id))
    except ServiceError as e:
        raise handle_review_error(e) from e


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: UUID,
    data: UpdateReviewRequest,
    service: ReviewServiceDep,
    user: CurrentUser,
) -> ReviewResponse:
    try:
        review = await service.update_review(
            review_id,
            user.id,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
            images=data.images,
        )
        return ReviewResponse.from_entity(review)
    except ServiceError as e:
        raise handle_review_error(e) from e


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: UUID,
    service: ReviewServiceDep,
    user: CurrentUser,
) -> None:
    try:
        await service.delete_review(review_id, user.id)
    except ServiceError as e:
        raise handle_review_error(e) from e


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
async def toggle_helpful(
    review_id: UUID,
    service: ReviewServiceDep,
    user: CurrentUser,
) -> ReviewResponse:
    """Mark a review helpful, or take the vote back."""
    try:
        return ReviewResponse.from_entity(
            await service.toggle_helpful(review_id, user.id)
        )
    except ServiceError as e:
        raise handle_review_error(e) from e


@router.post("/{review_id}/reply", response_model=ReviewResponse)
async def reply_to_review(
    review_id: UUID,
    data: ReplyReviewRequest,
    service: ReviewServiceDep,
    staff: StaffUser,
) -> ReviewResponse:
    try:
        review = await service.reply_to_review(review_id, staff.id, data.reply_text)
        return ReviewResponse.from_entity(review)
    except ServiceError as e:
        raise handle_review_error(e) from e
