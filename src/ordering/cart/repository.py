"""Repository for the Cart aggregate.

Owns the single-active-cart rule at the persistence boundary: writing an
active cart for an owner who already has a *different* active cart is
rejected with ``DuplicateActiveCart``. This mirrors a unique index on
``(owner_id, status)`` partial on ``status = 'active'`` in a document store.
Callers that race to create a cart re-read the winner and retry.
"""

from protean.core.repository import BaseRepository

from ordering.cart.cart import Cart, CartStatus
from ordering.domain import ordering
from ordering.errors import DuplicateActiveCart


@ordering.repository(part_of=Cart)
class CartRepository(BaseRepository):
    def add(self, cart: Cart) -> Cart:
        if cart.status == CartStatus.ACTIVE.value:
            other = self.find_active(cart.owner_id)
            if other is not None and str(other.id) != str(cart.id):
                raise DuplicateActiveCart(
                    "An active cart already exists for this user",
                    cartId=str(other.id),
                )
        return super().add(cart)

    def find_for_owner(self, owner_id, *statuses: CartStatus) -> list[Cart]:
        """Carts of ``owner_id`` in any of ``statuses``, most recently mutated first."""
        return (
            self._dao.query.filter(owner_id=str(owner_id), status__in=[status.value for status in statuses])
            .order_by("-last_mutated_at")
            .limit(None)
            .all()
            .items
        )

    def find_active(self, owner_id) -> Cart | None:
        carts = self.find_for_owner(owner_id, CartStatus.ACTIVE)
        return carts[0] if carts else None

    def find_latest_processing(self, owner_id) -> Cart | None:
        carts = self.find_for_owner(owner_id, CartStatus.PROCESSING)
        return carts[0] if carts else None

    def find_by_linked_order(self, order_id) -> Cart | None:
        carts = self._dao.query.filter(linked_order_id=str(order_id)).all().items
        return carts[0] if carts else None

    def history(self, owner_id) -> list[Cart]:
        """Checked-out carts, newest first. Retired empty carts are not history."""
        carts = self.find_for_owner(owner_id, CartStatus.PROCESSING, CartStatus.COMPLETED)
        return [cart for cart in carts if not cart.is_empty]
