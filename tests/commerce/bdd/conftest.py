"""Shared BDD fixtures and step definitions for the Commerce domain."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from commerce.cart.cart import Cart
from commerce.cart.items import AddCartItem
from commerce.errors import InsufficientStockError, InvalidStateError
from commerce.inventory.catalogue import RegisterProduct
from commerce.inventory.ledger import InventoryLedger
from commerce.order.order import Order
from commerce.order.placement import PlaceOrder
from commerce.order.queries import load_order
from commerce.payment.initiation import InitiatePayment

SHIPPING = {
    "address": "21 Zamzama Boulevard",
    "city": "Karachi",
    "state": "Sindh",
    "country": "Pakistan",
    "zip_code": "75600",
    "phone": "+92-300-1112223",
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def user_id():
    return "user-bdd"


@pytest.fixture()
def error():
    """Container for captured business errors."""
    return {"exc": None}


def place_order(user_id, payment_method="cod"):
    return current_domain.process(
        PlaceOrder(user_id=user_id, shipping_info=json.dumps(SHIPPING), payment_method=payment_method),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a product priced {price:g} with {stock:d} in stock"),
    target_fixture="product_id",
)
def registered_product(price, stock):
    return current_domain.process(
        RegisterProduct(name="Saffron Oud", price=price, stock=stock), asynchronous=False
    )


@given(parsers.cfparse("the cart holds {quantity:d} of that product"))
def cart_holds_product(user_id, product_id, quantity):
    current_domain.process(
        AddCartItem(user_id=user_id, item_type="product", item_id=product_id, quantity=quantity),
        asynchronous=False,
    )


@given(parsers.cfparse("{quantity:d} of that product was sold elsewhere"))
def sold_elsewhere(product_id, quantity):
    ledger = InventoryLedger()
    ledger.persist([ledger.reserve(product_id, quantity)])


@given("the user placed the order", target_fixture="order_id")
def placed_order(user_id):
    return place_order(user_id)


@given(
    parsers.cfparse('the user placed a "{payment_method}" order and started paying'),
    target_fixture="order_id",
)
def placed_and_paying(user_id, payment_method):
    order_id = place_order(user_id, payment_method=payment_method)
    current_domain.process(InitiatePayment(order_id=order_id, user_id=user_id), asynchronous=False)
    return order_id


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the product stock is {stock:d}"))
def product_stock_is(product_id, stock):
    assert InventoryLedger().available(product_id) == stock


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert load_order(order_id).order_status == status


@then(parsers.cfparse('the order payment is "{status}"'))
def order_payment_is(order_id, status):
    assert load_order(order_id).payment_status == status


@then("no order exists")
def no_order_exists():
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then(parsers.cfparse("the cart still holds {quantity:d} items"))
def cart_still_holds(user_id, quantity):
    assert current_domain.repository_for(Cart).for_user(user_id).total_items == quantity


@then(parsers.cfparse("the order fails with insufficient stock of {available:d} available"))
def fails_with_insufficient_stock(error, available):
    assert isinstance(error["exc"], InsufficientStockError), f"Expected InsufficientStock, got {error['exc']!r}"
    assert error["exc"].available == available


@then("the action fails with an invalid state")
def fails_with_invalid_state(error):
    assert isinstance(error["exc"], InvalidStateError), f"Expected InvalidState, got {error['exc']!r}"
