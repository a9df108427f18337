"""Database models for wishlists and carts.

Cassandra table definitions for:
- Wishlists: one row per user with a set of course IDs
- Carts: one row per user with coupon and discount
- Cart items: one row per (user, item) with unit price and quantity
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from learnhub.utils import ensure_utc_aware


class CartItemType(str, Enum):
    COURSE = "course"
    PRODUCT = "product"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

WISHLISTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.wishlists (
    user_id UUID PRIMARY KEY,
    course_ids SET<UUID>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CARTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.carts (
    user_id UUID PRIMARY KEY,
    applied_coupon_id UUID,
    discount DECIMAL,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CART_ITEMS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.cart_items (
    user_id UUID,
    item_id UUID,
    item_type TEXT,
    price DECIMAL,
    quantity INT,
    added_at TIMESTAMP,
    PRIMARY KEY ((user_id), item_id)
)
"""

WISHLIST_TABLES_CQL = [
    WISHLISTS_TABLE_CQL,
    CARTS_TABLE_CQL,
    CART_ITEMS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Wishlist:
    def __init__(
        self,
        user_id: UUID,
        course_ids: set[UUID] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.user_id = user_id
        self.course_ids = set(course_ids or ())
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now

    @classmethod
    def from_row(cls, row: Any) -> "Wishlist":
        return cls(
            user_id=row.user_id,
            course_ids=row.course_ids,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "course_ids": sorted(self.course_ids, key=str),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class CartItem:
    def __init__(
        self,
        user_id: UUID,
        item_id: UUID,
        item_type: str,
        price: Decimal,
        quantity: int = 1,
        added_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.item_id = item_id
        self.item_type = item_type
        self.price = Decimal(price)
        self.quantity = quantity
        self.added_at = ensure_utc_aware(added_at) or datetime.now(UTC)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_row(cls, row: Any) -> "CartItem":
        return cls(
            user_id=row.user_id,
            item_id=row.item_id,
            item_type=row.item_type,
            price=row.price if row.price is not None else Decimal(0),
            quantity=row.quantity or 0,
            added_at=row.added_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_type": self.item_type,
            "price": self.price,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
            "added_at": self.added_at,
        }


class Cart:
    """A user's cart. The total is derived from the items, never stored."""

    def __init__(
        self,
        user_id: UUID,
        items: list[CartItem] | None = None,
        applied_coupon_id: UUID | None = None,
        discount: Decimal | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.user_id = user_id
        self.items = list(items or [])
        self.applied_coupon_id = applied_coupon_id
        self.discount = Decimal(discount or 0)
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal(0))

    @classmethod
    def from_rows(cls, row: Any, item_rows: list[Any]) -> "Cart":
        return cls(
            user_id=row.user_id,
            items=[CartItem.from_row(item) for item in item_rows],
            applied_coupon_id=row.applied_coupon_id,
            discount=row.discount,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "total_amount": self.total_amount,
            "applied_coupon_id": self.applied_coupon_id,
            "discount": self.discount,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Cart {self.user_id} {len(self.items)} items {self.total_amount}>"
