"""Repository for the Order aggregate."""

from protean.core.repository import BaseRepository
from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.errors import OrderNotFound, Unauthorized
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository(BaseRepository):
    def find_by_id(self, order_id) -> Order | None:
        if not order_id:
            return None
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            return None

    def find_by_number(self, order_number) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None

    def find_by_payment_intent(self, payment_intent_ref) -> Order | None:
        orders = self._dao.query.filter(payment_intent_ref=payment_intent_ref).all().items
        return orders[0] if orders else None

    def find_for_owner(self, owner_id, page: int = 1, limit: int = 10) -> tuple[list[Order], int]:
        """One page of ``owner_id``'s orders, newest first, plus the total count."""
        results = (
            self._dao.query.filter(owner_id=str(owner_id))
            .order_by("-created_at")
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return results.items, results.total

    def get_owned(self, order_id, owner_id) -> Order:
        """The order, provided ``owner_id`` owns it."""
        order = self.find_by_id(order_id)
        if order is None:
            raise OrderNotFound("Order not found", orderId=str(order_id))
        if not order.is_owned_by(owner_id):
            raise Unauthorized("Unauthorized access to order")
        return order
