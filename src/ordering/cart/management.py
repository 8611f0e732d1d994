"""Cart management — commands and handler.

Handles lazy creation of the owner's active cart and the explicit reopen of a
checked-out cart whose order was never paid.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from notifications.fanout import notify_owner
from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import DuplicateActiveCart, InvalidTransition, NoCart
from ordering.order.order import Order, OrderStatus, PaymentStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class GetOrCreateCart:
    """Return the owner's active cart, creating an empty one if none exists."""

    owner_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ReopenCart:
    """Return the owner's processing cart to active and cancel its unpaid order."""

    owner_id = Identifier(required=True)


def current_cart_view(owner_id) -> dict:
    """The cart the owner should see: the active one, unless it is empty and a checkout is pending.

    No empty active cart is created while a checkout is pending.
    """
    repo = current_domain.repository_for(Cart)
    active = repo.find_active(owner_id)
    if active is not None and not active.is_empty:
        return active.summary()

    pending = repo.find_latest_processing(owner_id)
    if pending is not None:
        return pending.summary()
    return current_domain.process(GetOrCreateCart(owner_id=owner_id), asynchronous=False)


def cart_history(owner_id) -> list[dict]:
    return [cart.summary() for cart in current_domain.repository_for(Cart).history(owner_id)]


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(GetOrCreateCart)
    def get_or_create_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_active(command.owner_id)
        if cart is not None:
            return cart.summary()

        cart = Cart.create(owner_id=command.owner_id)
        try:
            repo.add(cart)
        except DuplicateActiveCart:
            # Lost the race: the winner is the owner's cart
            logger.info("Concurrent active cart creation, returning winner", owner_id=str(command.owner_id))
            cart = repo.find_active(command.owner_id)
        else:
            logger.info("Cart created", owner_id=str(command.owner_id), cart_id=str(cart.id))
        return cart.summary()

    @handle(ReopenCart)
    def reopen_cart(self, command):
        cart_repo = current_domain.repository_for(Cart)
        order_repo = current_domain.repository_for(Order)

        cart = cart_repo.find_latest_processing(command.owner_id)
        if cart is None:
            raise NoCart("No checked-out cart to reopen")

        order = order_repo.find_by_id(cart.linked_order_id)
        if order is not None and order.payment_status in (PaymentStatus.COMPLETED.value, PaymentStatus.REFUNDED.value):
            raise InvalidTransition(
                "Cannot reopen a cart whose order has been paid",
                paymentStatus=order.payment_status,
                orderId=str(order.id),
            )

        active = cart_repo.find_active(command.owner_id)
        if active is not None and not active.is_empty:
            raise InvalidTransition(
                "Another active cart already has items",
                cartStatus=active.status,
                cartId=str(active.id),
            )

        if order is not None and order.order_status != OrderStatus.CANCELLED.value:
            order.cancel(reason="Cart reopened by customer")
            order_repo.add(order)

        if active is not None:
            active.retire()
            cart_repo.add(active)

        cart.revert_to_active(reason="reopened")
        cart_repo.add(cart)

        logger.info(
            "Cart reopened",
            owner_id=str(command.owner_id),
            cart_id=str(cart.id),
            cancelled_order_id=str(order.id) if order is not None else None,
        )
        summary = cart.summary()
        notify_owner(command.owner_id, "cartUpdated", {"type": "CART_REOPENED", "cart": summary})
        return summary
