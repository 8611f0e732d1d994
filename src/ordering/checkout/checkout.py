"""Checkout — converts the owner's cart into an Order.

Cart selection, in order:

1. ``order_id`` given: the owner's processing cart linked to that order.
2. The owner's active cart, when it has lines.
3. The owner's most recently mutated processing cart.
4. Otherwise ``NoCart``, including when the only active cart is empty.

A processing cart whose order still exists and is still payable is a retry:
the existing order is re-priced (shipping, tax, address) and returned, so
re-opening checkout after a payment redirect never creates a second order.
A processing cart whose order is gone, or can no longer be paid, is reverted
to active and checked out afresh.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain

from notifications.fanout import notify_owner
from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import NoCart
from ordering.order.order import Order, OrderStatus
from ordering.utils import settings

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class Checkout:
    owner_id = Identifier(required=True)
    shipping_cost = Float(min_value=0.0)
    shipping_address = Text(sanitize=False)  # JSON: {street, city, state, zip_code, country}
    order_id = Identifier()


def select_checkout_cart(repo, owner_id, order_id=None) -> Cart:
    if order_id:
        cart = repo.find_by_linked_order(order_id)
        if cart is not None and str(cart.owner_id) == str(owner_id) and cart.is_processing:
            return cart

    active = repo.find_active(owner_id)
    if active is not None and not active.is_empty:
        return active

    pending = repo.find_latest_processing(owner_id)
    if pending is not None:
        return pending

    if active is not None:
        raise NoCart("Cart is empty", cartStatus=active.status)
    raise NoCart("Cart not found")


def _snapshot_lines(cart) -> list[dict]:
    return [
        {
            "product_ref": line.product_ref,
            "variant_label": line.variant_label,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "line_total": line.line_total,
        }
        for line in cart.lines
    ]


@ordering.command_handler(part_of=Cart)
class CheckoutHandler:
    @handle(Checkout)
    def checkout(self, command):
        cart_repo = current_domain.repository_for(Cart)
        order_repo = current_domain.repository_for(Order)

        shipping_address = json.loads(command.shipping_address) if command.shipping_address else None
        cart = select_checkout_cart(cart_repo, command.owner_id, command.order_id)

        if cart.is_processing:
            order = order_repo.find_by_id(cart.linked_order_id)
            if order is not None and order.can_pay and order.order_status == OrderStatus.PENDING.value:
                order.reprice(
                    tax_rate=settings.ORDERING_TAX_RATE,
                    shipping_cost=command.shipping_cost,
                    shipping_address=shipping_address,
                )
                order_repo.add(order)
                logger.info(
                    "Checkout retried, returning existing order",
                    owner_id=str(command.owner_id),
                    order_id=str(order.id),
                    total_amount=order.total_amount,
                )
                return order.summary()

            logger.warning(
                "Processing cart has no payable order, checking out afresh",
                owner_id=str(command.owner_id),
                cart_id=str(cart.id),
                linked_order_id=str(cart.linked_order_id),
            )
            active = cart_repo.find_active(command.owner_id)
            if active is not None and not active.is_empty:
                # The owner has moved on; leave the stale cart as history
                cart = active
            else:
                if active is not None:
                    active.retire()
                    cart_repo.add(active)
                cart.revert_to_active(reason="linked order unavailable")
                cart_repo.add(cart)

        if cart.is_empty:
            raise NoCart("Cart is empty", cartStatus=cart.status)

        order = Order.create(
            owner_id=command.owner_id,
            lines_data=_snapshot_lines(cart),
            shipping_cost=command.shipping_cost or 0.0,
            tax_rate=settings.ORDERING_TAX_RATE,
            currency=settings.ORDERING_CURRENCY,
            shipping_address=shipping_address,
        )
        order_repo.add(order)

        cart.mark_processing(order.id)
        cart_repo.add(cart)

        logger.info(
            "Order created from cart",
            owner_id=str(command.owner_id),
            cart_id=str(cart.id),
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
        )
        notify_owner(
            command.owner_id,
            "orderCreated",
            {"orderId": str(order.id), "orderNumber": order.order_number, "totalAmount": order.total_amount},
        )
        return order.summary()
