"""Pydantic schemas for wishlists and carts."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Cart, CartItemType, Wishlist


class WishlistResponse(BaseModel):
    user_id: UUID
    course_ids: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Wishlist) -> "WishlistResponse":
        return cls(**entity.to_dict())


class AddToCartRequest(BaseModel):
    item_id: UUID
    item_type: CartItemType
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(default=1, ge=1, le=100)


class CartItemResponse(BaseModel):
    item_id: UUID
    item_type: CartItemType
    price: Decimal
    quantity: int
    subtotal: Decimal
    added_at: datetime


class CartResponse(BaseModel):
    user_id: UUID
    items: list[CartItemResponse] = Field(default_factory=list)
    total_amount: Decimal
    applied_coupon_id: UUID | None = None
    discount: Decimal = Decimal(0)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Cart) -> "CartResponse":
        return cls(**entity.to_dict())
