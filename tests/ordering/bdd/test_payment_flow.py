"""BDD tests for payment reconciliation through the domain."""

import json

import pytest
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart
from ordering.checkout.checkout import Checkout
from ordering.order.order import Order
from ordering.payment.reconciliation import CreatePaymentIntent, ProcessPaymentWebhook, VerifyPayment
from payments.gateway.fake_adapter import TEST_SIGNATURE
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

pytestmark = pytest.mark.usefixtures("products")

scenarios("features/payment_reconciliation.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a checked-out order for {qty:d} of "{product_ref}"'), target_fixture="order")
def checked_out_order(owner_id, qty, product_ref):
    current_domain.process(AddToCart(owner_id=owner_id, product_ref=product_ref, quantity=qty), asynchronous=False)
    return current_domain.process(Checkout(owner_id=owner_id, shipping_cost=5.0), asynchronous=False)


@given("a payment intent was created for the order", target_fixture="intent")
def payment_intent(owner_id, order):
    return current_domain.process(CreatePaymentIntent(owner_id=owner_id, order_id=order["id"]), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the gateway reports the intent as "{status}"'))
def gateway_status(gateway, intent, status):
    gateway.set_status(intent["paymentIntentId"], status)


@when("the customer verifies the payment", target_fixture="outcome")
def verify(owner_id, intent):
    return current_domain.process(
        VerifyPayment(owner_id=owner_id, payment_intent_ref=intent["paymentIntentId"]),
        asynchronous=False,
    )


@when("a signed webhook arrives for the intent")
def webhook(intent):
    payload = json.dumps(
        {"id": "evt_bdd", "type": "payment_intent.succeeded", "data": {"object": {"id": intent["paymentIntentId"]}}}
    )
    current_domain.process(ProcessPaymentWebhook(raw_body=payload, signature=TEST_SIGNATURE), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the payment outcome is successful")
def outcome_successful(outcome):
    assert outcome.success is True


@then("the payment outcome is not successful")
def outcome_unsuccessful(outcome):
    assert outcome.success is False


@then(parsers.cfparse('the order payment status is "{status}"'))
def order_payment_status(order, status):
    assert current_domain.repository_for(Order).get(order["id"]).payment_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status(order, status):
    assert current_domain.repository_for(Order).get(order["id"]).order_status == status


@then(parsers.cfparse('the checked-out cart is "{status}"'))
def cart_status(order, status):
    assert current_domain.repository_for(Cart).find_by_linked_order(order["id"]).status == status
