"""Wishlist and cart API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from learnhub.auth.dependencies import CurrentUser
from learnhub.core.exceptions import ServiceError

from .dependencies import WishlistServiceDep, handle_wishlist_error
from .schemas import AddToCartRequest, CartResponse, WishlistResponse


wishlist_router = APIRouter(prefix="/v1/wishlist", tags=["wishlist"])
cart_router = APIRouter(prefix="/v1/cart", tags=["cart"])


# ==============================================================================
# Wishlist
# ==============================================================================


@wishlist_router.get("", response_model=WishlistResponse)
async def get_wishlist(
    service: WishlistServiceDep,
    user: CurrentUser,
) -> WishlistResponse:
    return WishlistResponse.from_entity(await service.get_wishlist(user.id))


@wishlist_router.post("/{course_id}", response_model=WishlistResponse)
async def add_to_wishlist(
    course_id: UUID,
    service: WishlistServiceDep,
    user: CurrentUser,
) -> WishlistResponse:
    return WishlistResponse.from_entity(
        await service.add_to_wishlist(user.id, course_id)
    )


@wishlist_router.delete("/{course_id}", response_model=WishlistResponse)
async def remove_from_wishlist(
    course_id: UUID,
    service: WishlistServiceDep,
    user: CurrentUser,
) -> WishlistResponse:
    return WishlistResponse.from_entity(
        await service.remove_from_wishlist(user.id, course_id)
    )


# ==============================================================================
# Cart
# ==============================================================================


@cart_router.get("", response_model=CartResponse)
async def get_cart(service: WishlistServiceDep, user: CurrentUser) -> CartResponse:
    return CartResponse.from_entity(await service.get_cart(user.id))


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(
    data: AddToCartRequest,
    service: WishlistServiceDep,
    user: CurrentUser,
) -> CartResponse:
    """Add an item; re-adding one raises its quantity at the original price."""
    try:
        cart = await service.add_to_cart(
            user.id,
            item_id=data.item_id,
            item_type=data.item_type,
            price=data.price,
            quantity=data.quantity,
        )
        return CartResponse.from_entity(cart)
    except ServiceError as e:
        raise handle_wishlist_error(e) from e


@cart_router.delete("/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: UUID,
    service: WishlistServiceDep,
    user: CurrentUser,
) -> CartResponse:
    return CartResponse.from_entity(await service.remove_from_cart(user.id, item_id))


@cart_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(service: WishlistServiceDep, user: CurrentUser) -> None:
    await service.clear_cart(user.id)
