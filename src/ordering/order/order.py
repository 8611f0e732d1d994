"""Order aggregate (CQRS) — an immutable snapshot of a cart at checkout time.

Lines and their prices are copied from the cart when the order is created
and are never re-derived from the live catalogue afterwards. The order
carries two independent status fields, correlated by payment reconciliation:

Order status:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING or PROCESSING)

Payment status:
    PENDING → PROCESSING (intent created) → COMPLETED | FAILED
    COMPLETED → REFUNDED

A gateway-confirmed payment moves the order to PROCESSING; a canceled
payment intent fails the payment and cancels the order.
"""

import secrets
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.errors import AlreadyCancelled, InvalidPaymentState, InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderRepriced,
    OrderShipped,
    PaymentCompleted,
    PaymentFailed,
    PaymentIntentAttached,
)
from ordering.utils.money import money, to_decimal

_ORDER_NUMBER_ALPHABET = string.digits + string.ascii_uppercase


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Order states from which cancellation is refused
_NON_CANCELLABLE_STATES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Payment states in which the order can still be (re)priced and paid
PAYABLE_PAYMENT_STATES = {PaymentStatus.PENDING, PaymentStatus.PROCESSING}


def generate_order_number() -> str:
    """Human-readable order number: time-based prefix plus a random suffix."""
    suffix = "".join(secrets.choice(_ORDER_NUMBER_ALPHABET) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout time.

    Once recorded on an Order, the address is a snapshot: later changes to the
    customer's address book do not affect it.
    """

    street = String(max_length=255, sanitize=False)
    city = String(max_length=100, sanitize=False)
    state = String(max_length=100, sanitize=False)
    zip_code = String(max_length=20, sanitize=False)
    country = String(max_length=100, sanitize=False)

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A purchased product (variant) with the unit price it was bought at."""

    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)

    def to_dict(self) -> dict:
        return {
            "productId": str(self.product_ref),
            "variant": self.variant_label,
            "quantity": self.quantity,
            "price": self.unit_price,
            "totalPrice": self.line_total,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    owner_id = Identifier(required=True)
    lines = HasMany(OrderLine)
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax = Float(default=0.0)
    total_amount = Float(default=0.0)
    currency = String(max_length=3, default="usd")
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_intent_ref = String(max_length=255)
    shipping_address = ValueObject(ShippingAddress)
    tracking_number = String(max_length=255, sanitize=False)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_add_up(self):
        expected = money(to_decimal(self.subtotal) + to_decimal(self.shipping_cost) + to_decimal(self.tax))
        if money(self.total_amount) != expected:
            raise ValidationError({"total_amount": ["Total must equal subtotal + shipping + tax"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        owner_id,
        lines_data,
        shipping_cost=0.0,
        tax_rate=0.0,
        currency="usd",
        shipping_address=None,
    ):
        """Create a new order from checked-out cart lines.

        Args:
            owner_id: The user placing the order.
            lines_data: List of dicts with product_ref, variant_label,
                        quantity, unit_price, line_total.
            shipping_cost: Flat shipping charge.
            tax_rate: Fraction of the subtotal charged as tax (0.08 = 8%).
            currency: ISO currency code, lowercase as the gateway expects.
            shipping_address: Dict with street, city, state, zip_code, country.
        """
        now = datetime.now(UTC)
        subtotal = money(sum((to_decimal(line["line_total"]) for line in lines_data), to_decimal(0)))
        shipping_cost = money(shipping_cost)
        tax = money(to_decimal(tax_rate) * to_decimal(subtotal))
        total_amount = money(to_decimal(subtotal) + to_decimal(shipping_cost) + to_decimal(tax))

        order = cls(
            order_number=generate_order_number(),
            owner_id=owner_id,
            lines=[OrderLine(**line) for line in lines_data],
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax=tax,
            total_amount=total_amount,
            currency=currency,
            order_status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                owner_id=str(owner_id),
                line_count=len(lines_data),
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                tax=tax,
                total_amount=total_amount,
                currency=currency,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, owner_id) -> bool:
        return str(self.owner_id) == str(owner_id)

    @property
    def can_pay(self) -> bool:
        return PaymentStatus(self.payment_status) in PAYABLE_PAYMENT_STATES

    def summary(self) -> dict:
        return {
            "id": str(self.id),
            "orderNumber": self.order_number,
            "items": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "shippingCost": self.shipping_cost,
            "tax": self.tax,
            "totalAmount": self.total_amount,
            "currency": self.currency,
            "orderStatus": self.order_status,
            "paymentStatus": self.payment_status,
            "paymentIntentId": self.payment_intent_ref,
            "shippingAddress": self.shipping_address.to_dict() if self.shipping_address else None,
            "trackingNumber": self.tracking_number,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def breakdown(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping": self.shipping_cost,
            "tax": self.tax,
            "total": self.total_amount,
        }

    # -------------------------------------------------------------------
    # Pricing refresh (checkout retry)
    # -------------------------------------------------------------------
    def reprice(self, tax_rate, shipping_cost=None, shipping_address=None):
        """Refresh shipping, tax and address before the order is paid."""
        if not self.can_pay or self.order_status != OrderStatus.PENDING.value:
            raise InvalidPaymentState(
                f"Cannot update pricing for order with payment status: {self.payment_status}",
                paymentStatus=self.payment_status,
                orderStatus=self.order_status,
            )

        previous_total = self.total_amount
        with atomic_change(self):
            if shipping_cost is not None:
                self.shipping_cost = money(shipping_cost)
            self.tax = money(to_decimal(tax_rate) * to_decimal(self.subtotal))
            self.total_amount = money(
                to_decimal(self.subtotal) + to_decimal(self.shipping_cost) + to_decimal(self.tax)
            )
            if shipping_address:
                self.shipping_address = ShippingAddress(**shipping_address)
            self.updated_at = datetime.now(UTC)

        if self.total_amount != previous_total:
            self.raise_(
                OrderRepriced(
                    order_id=str(self.id),
                    previous_total=previous_total,
                    shipping_cost=self.shipping_cost,
                    tax=self.tax,
                    total_amount=self.total_amount,
                )
            )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def attach_payment_intent(self, payment_intent_ref):
        if not self.can_pay:
            raise InvalidPaymentState(
                f"Cannot create payment for order with payment status: {self.payment_status}",
                paymentStatus=self.payment_status,
            )

        self.payment_intent_ref = payment_intent_ref
        if self.payment_status == PaymentStatus.PENDING.value:
            self.payment_status = PaymentStatus.PROCESSING.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentIntentAttached(
                order_id=str(self.id),
                payment_intent_ref=payment_intent_ref,
                amount=self.total_amount,
            )
        )

    def mark_payment_completed(self):
        if self.payment_status == PaymentStatus.COMPLETED.value:
            return

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.COMPLETED.value
            self.order_status = OrderStatus.PROCESSING.value
            self.updated_at = now

        self.raise_(
            PaymentCompleted(
                order_id=str(self.id),
                payment_intent_ref=self.payment_intent_ref,
                amount=self.total_amount,
                paid_at=now,
            )
        )

    def mark_payment_failed(self, gateway_status):
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.order_status = OrderStatus.CANCELLED.value
            self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                payment_intent_ref=self.payment_intent_ref,
                gateway_status=gateway_status,
            )
        )

    # -------------------------------------------------------------------
    # Order status
    # -------------------------------------------------------------------
    def cancel(self, reason=None):
        current = OrderStatus(self.order_status)
        if current == OrderStatus.CANCELLED:
            raise AlreadyCancelled("Order is already cancelled", orderStatus=self.order_status)
        if current in _NON_CANCELLABLE_STATES:
            raise InvalidTransition(
                f"Cannot cancel order with status: {current.value}",
                orderStatus=self.order_status,
            )

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.notes = reason
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                reason=reason,
                cancelled_at=now,
            )
        )

    def ship(self, tracking_number=None):
        if self.order_status != OrderStatus.PROCESSING.value:
            raise InvalidTransition(
                f"Only processing orders can be shipped, order is {self.order_status}",
                orderStatus=self.order_status,
            )

        now = datetime.now(UTC)
        self.order_status = OrderStatus.SHIPPED.value
        self.tracking_number = tracking_number
        self.updated_at = now

        self.raise_(OrderShipped(order_id=str(self.id), tracking_number=tracking_number, shipped_at=now))

    def deliver(self):
        if self.order_status != OrderStatus.SHIPPED.value:
            raise InvalidTransition(
                f"Only shipped orders can be delivered, order is {self.order_status}",
                orderStatus=self.order_status,
            )

        now = datetime.now(UTC)
        self.order_status = OrderStatus.DELIVERED.value
        self.updated_at = now

        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))
