"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.cart import Cart
from ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartCompleted,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartReopened,
)
from ordering.errors import DomainError
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCleared": CartCleared,
    "CartCheckedOut": CartCheckedOut,
    "CartReopened": CartReopened,
    "CartCompleted": CartCompleted,
}


@pytest.fixture()
def owner_id():
    return "user-001"


@pytest.fixture()
def error():
    """Container for a captured domain error."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps — Cart
# ---------------------------------------------------------------------------
@given("an active cart", target_fixture="cart")
def active_cart(owner_id):
    cart = Cart.create(owner_id=owner_id)
    cart._events.clear()
    return cart


@given(parsers.cfparse('the cart holds {qty:d} of "{product_ref}" at {price:f}'), target_fixture="cart")
def cart_with_line(cart, qty, product_ref, price):
    cart.add_item(product_ref, qty, price)
    cart._events.clear()
    return cart


@given("the cart is checked out", target_fixture="cart")
def checked_out_cart(cart):
    cart.mark_processing("ord-001")
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Then steps — Cart
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart status is "{status}"'))
def cart_status_is(cart, status):
    assert cart.status == status


@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_n_line(cart, count):
    assert len(cart.lines) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.lines) == count


@then(parsers.cfparse("the cart total is {amount:f}"))
def cart_total_is(cart, amount):
    assert cart.total_amount == amount


@then(parsers.cfparse('the cart action fails with "{kind}"'))
def cart_action_fails(error, kind):
    assert error["exc"] is not None, "Expected a domain error but none was raised"
    assert isinstance(error["exc"], DomainError)
    assert error["exc"].kind == kind


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"
