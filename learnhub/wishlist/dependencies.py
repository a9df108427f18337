"""FastAPI dependencies for wishlists and carts."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.core.exceptions import ServiceError, to_http_exception

from .service import WishlistService


async def get_wishlist_service(request: Request) -> WishlistService:
    """Get wishlist service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "wishlist_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Wishlist service not available",
        )
    return app_state.wishlist_service


WishlistServiceDep = Annotated[WishlistService, Depends(get_wishlist_service)]


def handle_wishlist_error(error: ServiceError) -> HTTPException:
    status_map = {"concurrent_update": status.HTTP_409_CONFLICT}
    return to_http_exception(error, status_map)
