# ruff: noqa: S608
"""Course category service layer."""

from typing import TYPE_CHECKING

import structlog

from learnhub.core.exceptions import BadRequestError, NotFoundError
from learnhub.utils import generate_slug

from .models import CourseCategory


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class CategoryNotFoundError(NotFoundError):
    def __init__(self, message: str = "Category not found"):
        super().__init__(message, "category_not_found")


class InvalidCategoryNameError(BadRequestError):
    def __init__(self, message: str = "Category name is required"):
        super().__init__(message, "invalid_category_name")


class CategoryService:
    """Service for the course category catalogue."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_categories
        """)

        self._get_by_slug = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_categories WHERE slug = ?
        """)

        self._insert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_categories
            (slug, name, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.course_categories
            WHERE slug = ?
            IF EXISTS
        """)

    async def list_active_names(self) -> list[str]:
        """Names of active categories, alphabetically."""
        rows = await self.session.aexecute(self._get_all)
        categories = [CourseCategory.from_row(row) for row in rows]
        return sorted(c.name for c in categories if c.is_active)

    async def get_by_slug(self, slug: str) -> CourseCategory | None:
        result = await self.session.aexecute(self._get_by_slug, [slug])
        row = result.one()
        return CourseCategory.from_row(row) if row else None

    async def add_category(self, name: str | None) -> CourseCategory:
        """Add a category, or return the existing one with the same slug.

        Raises:
            InvalidCategoryNameError: If the name is blank or has no
                characters usable in a slug
        """
        clean = (name or "").strip()
        if not clean:
            raise InvalidCategoryNameError
        slug = generate_slug(clean)
        if not slug:
            raise InvalidCategoryNameError(
                "Category name must contain letters or digits"
            )

        category = CourseCategory(slug=slug, name=clean)
        result = await self.session.aexecute(
            self._insert,
            [
                category.slug,
                category.name,
                category.is_active,
                category.created_at,
                category.updated_at,
            ],
        )
        if not result.was_applied:
            return await self.get_by_slug(slug)

        logger.info("category_added", slug=slug, name=clean)
        return category

    async def remove_by_slug(self, slug: str) -> None:
        """Delete a category.

        Raises:
            CategoryNotFoundError: If no category has this slug
        """
        result = await self.session.aexecute(self._delete, [slug])
        if not result.was_applied:
            raise CategoryNotFoundError
        logger.info("category_removed", slug=slug)
