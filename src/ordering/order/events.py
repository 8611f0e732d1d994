"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """An order was created from a checked-out cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    owner_id = Identifier(required=True)
    line_count = Integer(required=True)
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    tax = Float(required=True)
    total_amount = Float(required=True)
    currency = String(max_length=3)
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRepriced:
    """Shipping, tax or address were refreshed on a checkout retry."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_total = Float(required=True)
    shipping_cost = Float(required=True)
    tax = Float(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="Order")
class PaymentIntentAttached:
    """A gateway payment intent was created for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_ref = String(required=True, max_length=255)
    amount = Float(required=True)


@ordering.event(part_of="Order")
class PaymentCompleted:
    """The gateway reported the order's payment intent as succeeded."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_ref = String(max_length=255)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The gateway reported the order's payment intent as canceled."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_ref = String(max_length=255)
    gateway_status = String(max_length=50)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True, max_length=50)
    reason = String(max_length=500, sanitize=False)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(max_length=255, sanitize=False)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)
