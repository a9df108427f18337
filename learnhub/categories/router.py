"""Course category API endpoints."""

from fastapi import APIRouter, status

from learnhub.auth.dependencies import AdminUser
from learnhub.core.exceptions import ServiceError

from .dependencies import CategoryServiceDep, handle_category_error
from .schemas import CategoryResponse, CreateCategoryRequest


router = APIRouter(prefix="/v1/categories", tags=["categories"])


@router.get("", response_model=list[str])
async def list_categories(service: CategoryServiceDep) -> list[str]:
    """Active category names, alphabetically."""
    return await service.list_active_names()


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a course category (admin)",
)
async def add_category(
    data: CreateCategoryRequest,
    service: CategoryServiceDep,
    _admin: AdminUser,
) -> CategoryResponse:
    try:
        return CategoryResponse.from_entity(await service.add_category(data.name))
    except ServiceError as e:
        raise handle_category_error(e) from e


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_category(
    slug: str,
    service: CategoryServiceDep,
    _admin: AdminUser,
) -> None:
    try:
        await service.remove_by_slug(slug)
    except ServiceError as e:
        raise handle_category_error(e) from e
