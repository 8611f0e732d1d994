"""Tests for the Order aggregate — pricing, payment and order status."""

import re

import pytest
from ordering.errors import AlreadyCancelled, InvalidPaymentState, InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderRepriced,
    PaymentCompleted,
    PaymentFailed,
    PaymentIntentAttached,
)
from ordering.order.order import Order, OrderStatus, PaymentStatus, generate_order_number


def _line(product_ref="prod-a", quantity=2, unit_price=10.0, variant_label=None):
    return {
        "product_ref": product_ref,
        "variant_label": variant_label,
        "quantity": quantity,
        "unit_price": unit_price,
        "line_total": round(quantity * unit_price, 2),
    }


def _order(**kwargs):
    defaults = {
        "owner_id": "user-001",
        "lines_data": [_line()],
        "shipping_cost": 5.0,
        "tax_rate": 0.08,
    }
    defaults.update(kwargs)
    return Order.create(**defaults)


def _paid_order():
    order = _order()
    order.attach_payment_intent("pi_001")
    order.mark_payment_completed()
    return order


class TestOrderNumber:
    def test_format(self):
        assert re.fullmatch(r"ORD-\d{13}-[0-9A-Z]{9}", generate_order_number())

    def test_numbers_differ(self):
        assert len({generate_order_number() for _ in range(50)}) == 50


class TestOrderCreation:
    def test_pricing_breakdown(self):
        order = _order()
        assert order.subtotal == 20.0
        assert order.shipping_cost == 5.0
        assert order.tax == 1.6
        assert order.total_amount == 26.6

    def test_rounding_is_to_cents(self):
        order = _order(lines_data=[_line(quantity=3, unit_price=19.99)], shipping_cost=0.0, tax_rate=0.0825)
        assert order.subtotal == 59.97
        assert order.tax == 4.95
        assert order.total_amount == 64.92

    def test_initial_statuses(self):
        order = _order()
        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_intent_ref is None
        assert order.can_pay

    def test_lines_are_copied(self):
        order = _order(lines_data=[_line(), _line("prod-shirt", 1, 22.0, "Large")])
        assert [line.to_dict() for line in order.lines] == [
            {"productId": "prod-a", "variant": None, "quantity": 2, "price": 10.0, "totalPrice": 20.0},
            {"productId": "prod-shirt", "variant": "Large", "quantity": 1, "price": 22.0, "totalPrice": 22.0},
        ]

    def test_shipping_address_snapshot(self):
        order = _order(shipping_address={"street": "1 Main St", "city": "Springfield", "zip_code": "12345"})
        assert order.summary()["shippingAddress"]["zipCode"] == "12345"

    def test_raises_order_created(self):
        order = _order()
        event = next(e for e in order._events if isinstance(e, OrderCreated))
        assert event.order_number == order.order_number
        assert event.total_amount == 26.6
        assert event.line_count == 1


class TestReprice:
    def test_refreshes_tax_and_shipping(self):
        order = _order()
        order.reprice(tax_rate=0.1, shipping_cost=10.0)
        assert order.tax == 2.0
        assert order.shipping_cost == 10.0
        assert order.total_amount == 32.0
        event = next(e for e in order._events if isinstance(e, OrderRepriced))
        assert event.previous_total == 26.6

    def test_unchanged_total_raises_no_event(self):
        order = _order()
        order.reprice(tax_rate=0.08)
        assert order.total_amount == 26.6
        assert not any(isinstance(e, OrderRepriced) for e in order._events)

    def test_paid_order_cannot_be_repriced(self):
        order = _paid_order()
        with pytest.raises(InvalidPaymentState):
            order.reprice(tax_rate=0.1)


class TestPayment:
    def test_attach_intent_moves_payment_to_processing(self):
        order = _order()
        order.attach_payment_intent("pi_001")
        assert order.payment_intent_ref == "pi_001"
        assert order.payment_status == PaymentStatus.PROCESSING.value
        assert order.order_status == OrderStatus.PENDING.value
        assert any(isinstance(e, PaymentIntentAttached) for e in order._events)

    def test_intent_can_be_replaced_while_processing(self):
        order = _order()
        order.attach_payment_intent("pi_001")
        order.attach_payment_intent("pi_002")
        assert order.payment_intent_ref == "pi_002"
        assert order.payment_status == PaymentStatus.PROCESSING.value

    def test_completion_moves_order_to_processing(self):
        order = _paid_order()
        assert order.payment_status == PaymentStatus.COMPLETED.value
        assert order.order_status == OrderStatus.PROCESSING.value
        assert not order.can_pay

    def test_completion_is_idempotent(self):
        order = _paid_order()
        order.mark_payment_completed()
        completions = [e for e in order._events if isinstance(e, PaymentCompleted)]
        assert len(completions) == 1

    def test_paid_order_rejects_new_intent(self):
        order = _paid_order()
        with pytest.raises(InvalidPaymentState):
            order.attach_payment_intent("pi_002")

    def test_failure_cancels_order(self):
        order = _order()
        order.attach_payment_intent("pi_001")
        order.mark_payment_failed("canceled")
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.order_status == OrderStatus.CANCELLED.value
        event = next(e for e in order._events if isinstance(e, PaymentFailed))
        assert event.gateway_status == "canceled"


class TestOrderStatus:
    def test_cancel_pending_order(self):
        order = _order()
        order.cancel("Changed my mind")
        assert order.order_status == OrderStatus.CANCELLED.value
        assert order.notes == "Changed my mind"
        event = next(e for e in order._events if isinstance(e, OrderCancelled))
        assert event.previous_status == "pending"

    def test_cancel_paid_processing_order(self):
        order = _paid_order()
        order.cancel()
        assert order.order_status == OrderStatus.CANCELLED.value

    def test_cancel_twice(self):
        order = _order()
        order.cancel()
        with pytest.raises(AlreadyCancelled):
            order.cancel()

    @pytest.mark.parametrize("advance", [["ship"], ["ship", "deliver"]])
    def test_shipped_or_delivered_cannot_cancel(self, advance):
        order = _paid_order()
        for step in advance:
            getattr(order, step)()
        with pytest.raises(InvalidTransition):
            order.cancel()

    def test_ship_and_deliver(self):
        order = _paid_order()
        order.ship(tracking_number="TRK-1")
        assert order.order_status == OrderStatus.SHIPPED.value
        assert order.tracking_number == "TRK-1"
        order.deliver()
        assert order.order_status == OrderStatus.DELIVERED.value

    def test_unpaid_order_cannot_ship(self):
        with pytest.raises(InvalidTransition):
            _order().ship()

    def test_cannot_deliver_before_shipping(self):
        with pytest.raises(InvalidTransition):
            _paid_order().deliver()


class TestSummary:
    def test_summary_fields(self):
        order = _order()
        summary = order.summary()
        assert summary["id"] == str(order.id)
        assert summary["totalAmount"] == 26.6
        assert summary["orderStatus"] == "pending"
        assert summary["paymentStatus"] == "pending"
        assert summary["paymentIntentId"] is None
        assert order.breakdown() == {"subtotal": 20.0, "shipping": 5.0, "tax": 1.6, "total": 26.6}
