"""Order fulfillment — commands and handler.

Shipment and delivery are recorded by staff, not by the order's owner; the
API only routes these commands for admin callers.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from notifications.fanout import notify_owner
from ordering.domain import ordering
from ordering.errors import OrderNotFound
from ordering.order.order import Order


@ordering.command(part_of="Order")
class ShipOrder:
    """Record that a paid order has left the warehouse."""

    order_id = Identifier(required=True)
    tracking_number = String(max_length=255, sanitize=False)


@ordering.command(part_of="Order")
class DeliverOrder:
    """Record that the carrier has confirmed delivery to the customer."""

    order_id = Identifier(required=True)


def _load(repo, order_id) -> Order:
    order = repo.find_by_id(order_id)
    if order is None:
        raise OrderNotFound("Order not found", orderId=str(order_id))
    return order


@ordering.command_handler(part_of=Order)
class RecordFulfillmentHandler:
    @handle(ShipOrder)
    def ship_order(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        order.ship(tracking_number=command.tracking_number)
        repo.add(order)

        notify_owner(
            order.owner_id,
            "orderUpdated",
            {"orderId": str(order.id), "orderStatus": order.order_status, "trackingNumber": order.tracking_number},
        )
        return order.summary()

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        order.deliver()
        repo.add(order)

        notify_owner(order.owner_id, "orderUpdated", {"orderId": str(order.id), "orderStatus": order.order_status})
        return order.summary()
