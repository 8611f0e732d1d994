"""Order cancellation — command and handler.

Only the owner may cancel. Cancelling an unpaid order releases nothing on the
gateway side; the intent is left to expire.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from notifications.fanout import notify_owner
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    owner_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(max_length=500, sanitize=False)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_owned(command.order_id, command.owner_id)
        order.cancel(reason=command.reason)
        repo.add(order)

        logger.info("Order cancelled", order_id=str(order.id), owner_id=str(command.owner_id))
        notify_owner(
            order.owner_id,
            "orderUpdated",
            {"orderId": str(order.id), "orderStatus": order.order_status},
        )
        return order.summary()
