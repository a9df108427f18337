# ruff: noqa: S608
"""Wishlist and cart service layer.

Wishlist membership uses atomic set add/remove. Cart item quantities are
advanced with compare-and-set so concurrent adds are never lost.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.core.exceptions import ConcurrentUpdateError

from .models import Cart, CartItem, CartItemType, Wishlist


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


class WishlistService:
    """Service for wishlists and carts."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.max_retries = max_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Wishlist
        self._get_wishlist = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.wishlists WHERE user_id = ?
        """)

        self._create_wishlist = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.wishlists
            (user_id, course_ids, created_at, updated_at)
            VALUES (?, {{}}, ?, ?)
            IF NOT EXISTS
        """)

        self._add_wishlist_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.wishlists
            SET course_ids = course_ids + ?, updated_at = ?
            WHERE user_id = ?
        """)

        self._remove_wishlist_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.wishlists
            SET course_ids = course_ids - ?, updated_at = ?
            WHERE user_id = ?
        """)

        # Cart
        self._get_cart = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.carts WHERE user_id = ?
        """)

        self._create_cart = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.carts
            (user_id, discount, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._reset_cart = self.session.prepare(f"""
            UPDATE {self.keyspace}.carts
            SET applied_coupon_id = null, discount = ?, updated_at = ?
            WHERE user_id = ?
        """)

        self._touch_cart = self.session.prepare(f"""
            UPDATE {self.keyspace}.carts SET updated_at = ? WHERE user_id = ?
        """)

        # Cart items
        self._get_cart_items = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.cart_items WHERE user_id = ?
        """)

        self._get_cart_item = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.cart_items
            WHERE user_id = ? AND item_id = ?
        """)

        self._insert_cart_item = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.cart_items
            (user_id, item_id, item_type, price, quantity, added_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._cas_cart_item_quantity = self.session.prepare(f"""
            UPDATE {self.keyspace}.cart_items
            SET quantity = ?
            WHERE user_id = ? AND item_id = ?
            IF quantity = ?
        """)

        self._delete_cart_item = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.cart_items
            WHERE user_id = ? AND item_id = ?
            IF EXISTS
        """)

    # ==========================================================================
    # Wishlist
    # ==========================================================================

    async def get_wishlist(self, user_id: UUID) -> Wishlist:
        """Get the user's wishlist, creating an empty one on first access."""
        result = await self.session.aexecute(self._get_wishlist, [user_id])
        row = result.one()
        if row:
            return Wishlist.from_row(row)

        wishlist = Wishlist(user_id=user_id)
        created = await self.session.aexecute(
            self._create_wishlist,
            [user_id, wishlist.created_at, wishlist.updated_at],
        )
        if not created.was_applied:
            result = await self.session.aexecute(self._get_wishlist, [user_id])
            return Wishlist.from_row(result.one())
        return wishlist

    async def add_to_wishlist(self, user_id: UUID, course_id: UUID) -> Wishlist:
        """Add a course; adding it twice has no effect."""
        await self.get_wishlist(user_id)
        await self.session.aexecute(
            self._add_wishlist_course, [{course_id}, datetime.now(UTC), user_id]
        )
        logger.info(
            "wishlist_course_added", user_id=str(user_id), course_id=str(course_id)
        )
        return await self.get_wishlist(user_id)

    async def remove_from_wishlist(self, user_id: UUID, course_id: UUID) -> Wishlist:
        await self.get_wishlist(user_id)
        await self.session.aexecute(
            self._remove_wishlist_course, [{course_id}, datetime.now(UTC), user_id]
        )
        return await self.get_wishlist(user_id)

    # ==========================================================================
    # Cart
    # ==========================================================================

    async def _read_cart(self, user_id: UUID) -> Cart | None:
        result = await self.session.aexecute(self._get_cart, [user_id])
        row = result.one()
        if not row:
            return None
        items = await self.session.aexecute(self._get_cart_items, [user_id])
        return Cart.from_rows(row, list(items))

    async def get_cart(self, user_id: UUID) -> Cart:
        """Get the user's cart, creating an empty one on first access."""
        cart = await self._read_cart(user_id)
        if cart is not None:
            return cart

        cart = Cart(user_id=user_id)
        created = await self.session.aexecute(
            self._create_cart,
            [user_id, cart.discount, cart.created_at, cart.updated_at],
        )
        if not created.was_applied:
            return await self._read_cart(user_id)
        return cart

    async def add_to_cart(
        self,
        user_id: UUID,
        item_id: UUID,
        item_type: CartItemType,
        price: Decimal,
        quantity: int = 1,
    ) -> Cart:
        """Add an item, or raise the quantity of one already in the cart.

        An item already in the cart keeps the price it was first added at.
        """
        await self.get_cart(user_id)
        item_type = CartItemType(item_type).value

        for attempt in range(1, self.max_retries + 1):
            result = await self.session.aexecute(
                self._get_cart_item, [user_id, item_id]
            )
            row = result.one()

            if row is None:
                inserted = await self.session.aexecute(
                    self._insert_cart_item,
                    [user_id, item_id, item_type, price, quantity, datetime.now(UTC)],
                )
                applied = inserted.was_applied
            else:
                current = CartItem.from_row(row)
                updated = await self.session.aexecute(
                    self._cas_cart_item_quantity,
                    [current.quantity + quantity, user_id, item_id, current.quantity],
                )
                applied = updated.was_applied

            if applied:
                break

            logger.debug(
                "cart_item_write_conflict",
                user_id=str(user_id),
                item_id=str(item_id),
                attempt=attempt,
            )
        else:
            raise ConcurrentUpdateError

        await self.session.aexecute(self._touch_cart, [datetime.now(UTC), user_id])
        logger.info(
            "cart_item_added",
            user_id=str(user_id),
            item_id=str(item_id),
            quantity=quantity,
        )
        return await self.get_cart(user_id)

    async def remove_from_cart(self, user_id: UUID, item_id: UUID) -> Cart:
        await self.get_cart(user_id)
        await self.session.aexecute(self._delete_cart_item, [user_id, item_id])
        await self.session.aexecute(self._touch_cart, [datetime.now(UTC), user_id])
        return await self.get_cart(user_id)

    async def clear_cart(self, user_id: UUID) -> None:
        """Remove all items and reset coupon and discount.

        Item rows are written conditionally, and a conditional delete must
        name the full key, so items are removed one at a time.
        """
        items = await self.session.aexecute(self._get_cart_items, [user_id])
        for row in items:
            await self.session.aexecute(self._delete_cart_item, [user_id, row.item_id])
        await self.session.aexecute(
            self._reset_cart, [Decimal(0), datetime.now(UTC), user_id]
        )
        logger.info("cart_cleared", user_id=str(user_id))
