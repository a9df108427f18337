"""Pydantic schemas for course categories."""

from datetime import datetime

from pydantic import BaseModel, Field

from .models import CourseCategory


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., max_length=100, description="Category display name")


class CategoryResponse(BaseModel):
    slug: str
    name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: CourseCategory) -> "CategoryResponse":
        return cls(**entity.to_dict())
