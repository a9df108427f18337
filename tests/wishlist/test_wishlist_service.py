"""Tests for wishlist and cart behaviour."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from learnhub.core.exceptions import ConcurrentUpdateError
from learnhub.wishlist.models import Cart, CartItem
from learnhub.wishlist.service import WishlistService


USER_ID = uuid4()


def cart_row() -> SimpleNamespace:
    return SimpleNamespace(
        user_id=USER_ID,
        applied_coupon_id=None,
        discount=Decimal("0"),
        created_at=datetime(2026, 2, 1),
        updated_at=datetime(2026, 2, 1),
    )


def item_row(item_id, price: str, quantity: int) -> SimpleNamespace:
    return SimpleNamespace(
        user_id=USER_ID,
        item_id=item_id,
        item_type="course",
        price=Decimal(price),
        quantity=quantity,
        added_at=datetime(2026, 2, 1),
    )


@pytest.fixture
def service(mock_session) -> WishlistService:
    return WishlistService(mock_session, "test_ks", max_retries=2)


def test_cart_total_is_sum_of_subtotals() -> None:
    cart = Cart(
        user_id=USER_ID,
        items=[
            CartItem(USER_ID, uuid4(), "course", Decimal("49.90"), 2),
            CartItem(USER_ID, uuid4(), "product", Decimal("10.05"), 1),
        ],
        discount=Decimal("5"),
    )

    assert cart.total_amount == Decimal("109.85")


def test_empty_cart_total_is_zero() -> None:
    assert Cart(user_id=USER_ID).total_amount == Decimal(0)


class TestWishlist:
    @pytest.mark.asyncio
    async def test_first_access_creates_wishlist(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [make_result([]), make_result(applied=True)]

        wishlist = await service.get_wishlist(USER_ID)

        assert wishlist.course_ids == set()

    @pytest.mark.asyncio
    async def test_add_course(self, service, mock_session, make_result) -> None:
        course_id = uuid4()
        before = SimpleNamespace(
            user_id=USER_ID, course_ids=None, created_at=None, updated_at=None
        )
        after = SimpleNamespace(
            user_id=USER_ID, course_ids={course_id}, created_at=None, updated_at=None
        )
        mock_session.aexecute.side_effect = [
            make_result([before]),
            make_result(),
            make_result([after]),
        ]

        wishlist = await service.add_to_wishlist(USER_ID, course_id)

        assert wishlist.course_ids == {course_id}
        add_params = mock_session.aexecute.await_args_list[1].args[1]
        assert add_params[0] == {course_id}


class TestCart:
    @pytest.mark.asyncio
    async def test_readding_item_increments_quantity(
        self, service, mock_session, make_result
    ) -> None:
        item_id = uuid4()
        mock_session.aexecute.side_effect = [
            make_result([cart_row()]),
            make_result([item_row(item_id, "20.00", 2)]),
            make_result([item_row(item_id, "20.00", 2)]),
            make_result(applied=True),
            make_result(),
            make_result([cart_row()]),
            make_result([item_row(item_id, "20.00", 3)]),
        ]

        cart = await service.add_to_cart(
            USER_ID, item_id, "course", Decimal("25.00"), quantity=1
        )

        cas_params = mock_session.aexecute.await_args_list[3].args[1]
        assert cas_params == [3, USER_ID, item_id, 2]
        assert cart.items[0].quantity == 3
        assert cart.total_amount == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_new_item_inserted(self, service, mock_session, make_result) -> None:
        item_id = uuid4()
        mock_session.aexecute.side_effect = [
            make_result([cart_row()]),
            make_result([]),
            make_result([]),
            make_result(applied=True),
            make_result(),
            make_result([cart_row()]),
            make_result([item_row(item_id, "15.50", 1)]),
        ]

        cart = await service.add_to_cart(USER_ID, item_id, "course", Decimal("15.50"))

        assert cart.total_amount == Decimal("15.50")

    @pytest.mark.asyncio
    async def test_quantity_conflicts_exhaust(
        self, service, mock_session, make_result
    ) -> None:
        item_id = uuid4()
        mock_session.aexecute.side_effect = [
            make_result([cart_row()]),
            make_result([]),
            make_result([item_row(item_id, "5", 1)]),
            make_result(applied=False),
            make_result([item_row(item_id, "5", 2)]),
            make_result(applied=False),
        ]

        with pytest.raises(ConcurrentUpdateError):
            await service.add_to_cart(USER_ID, item_id, "product", Decimal("5"))

    @pytest.mark.asyncio
    async def test_clear_cart_resets_discount(
        self, service, mock_session, make_result
    ) -> None:
        await service.clear_cart(USER_ID)

        reset_params = mock_session.aexecute.await_args_list[1].args[1]
        assert reset_params[0] == Decimal(0)
        assert reset_params[2] == USER_ID

    @pytest.mark.asyncio
    async def test_clear_cart_deletes_each_item_conditionally(
        self, service, mock_session, make_result
    ) -> None:
        first, second = uuid4(), uuid4()
        mock_session.aexecute.side_effect = [
            make_result(
                [SimpleNamespace(item_id=first), SimpleNamespace(item_id=second)]
            ),
            make_result(),
            make_result(),
            make_result(),
        ]

        await service.clear_cart(USER_ID)

        deleted = [c.args[1] for c in mock_session.aexecute.await_args_list[1:3]]
        assert deleted == [[USER_ID, first], [USER_ID, second]]
        assert mock_session.aexecute.await_args_list[3].args[1][0] == Decimal(0)


def test_cart_item_delete_is_conditional(mock_session) -> None:
    WishlistService(mock_session, "test_ks")

    statements = [c.args[0] for c in mock_session.prepare.call_args_list]
    deletes = [s for s in statements if "DELETE FROM test_ks.cart_items" in s]

    assert deletes
    assert all("IF EXISTS" in s for s in deletes)
