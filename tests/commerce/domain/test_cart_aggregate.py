"""Tests for the Cart aggregate: lines, merging and derived totals."""

import pytest
from protean.exceptions import ValidationError

from commerce.cart.cart import Cart, ItemType
from commerce.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from commerce.errors import NotFoundError


def _cart():
    return Cart(user_id="user-001")


class TestAddProduct:
    def test_add_product_line(self):
        cart = _cart()
        line = cart.add_product("prod-1", "Amber", 20.0, 3, image_ref="amber.png")

        assert len(cart.lines) == 1
        assert line.item_type == ItemType.PRODUCT.value
        assert cart.total_items == 3
        assert cart.total_price == 60.0
        assert isinstance(cart._events[-1], CartLineAdded)

    def test_same_product_merges_into_one_line(self):
        cart = _cart()
        first = cart.add_product("prod-1", "Amber", 20.0, 1)
        second = cart.add_product("prod-1", "Amber", 20.0, 2)

        assert len(cart.lines) == 1
        assert first.id == second.id
        assert cart.quantity_of_product("prod-1") == 3
        assert cart.total_price == 60.0

    def test_different_products_get_separate_lines(self):
        cart = _cart()
        cart.add_product("prod-1", "Amber", 20.0, 1)
        cart.add_product("prod-2", "Cedar", 12.5, 2)

        assert len(cart.lines) == 2
        assert cart.total_items == 3
        assert cart.total_price == 45.0

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_product("prod-1", "Amber", 20.0, 0)


class TestAddCustomization:
    def test_customizations_never_merge(self):
        cart = _cart()
        cart.add_customization("cust-1", "My Scent", 157.5, 2)
        cart.add_customization("cust-1", "My Scent", 157.5, 2)

        assert len(cart.lines) == 2
        assert cart.total_items == 4
        assert cart.total_price == 630.0

    def test_customization_line_is_not_a_product(self):
        cart = _cart()
        line = cart.add_customization("cust-1", "My Scent", 50.0, 1)
        assert not line.is_product()
        assert cart.product_line("cust-1") is None


class TestUpdateAndRemove:
    def test_update_quantity_recomputes_totals(self):
        cart = _cart()
        line = cart.add_product("prod-1", "Amber", 20.0, 1)
        cart.update_quantity(line.id, 4)

        assert cart.total_items == 4
        assert cart.total_price == 80.0
        assert isinstance(cart._events[-1], CartLineQuantityChanged)

    def test_zero_quantity_removes_line(self):
        cart = _cart()
        line = cart.add_product("prod-1", "Amber", 20.0, 1)
        cart.update_quantity(line.id, 0)

        assert cart.is_empty
        assert cart.total_items == 0
        assert cart.total_price == 0.0
        assert isinstance(cart._events[-1], CartLineRemoved)

    def test_remove_line(self):
        cart = _cart()
        keep = cart.add_product("prod-1", "Amber", 20.0, 1)
        drop = cart.add_product("prod-2", "Cedar", 10.0, 1)
        cart.remove_line(drop.id)

        assert [str(ln.id) for ln in cart.lines] == [str(keep.id)]
        assert cart.total_price == 20.0

    def test_unknown_line_is_not_found(self):
        with pytest.raises(NotFoundError, match="Item not found in cart"):
            _cart().remove_line("missing")

    def test_clear_empties_cart(self):
        cart = _cart()
        cart.add_product("prod-1", "Amber", 20.0, 1)
        cart.add_customization("cust-1", "My Scent", 50.0, 1)
        cart.clear()

        assert cart.is_empty
        assert cart.total_items == 0
        assert cart.total_price == 0.0
        assert cart._events[-1].lines_removed == 2
        assert isinstance(cart._events[-1], CartCleared)
