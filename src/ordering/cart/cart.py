"""Shopping Cart aggregate (CQRS) — one active cart per owner, checked out into an Order.

The cart is a standard CQRS aggregate (not event sourced). It holds priced
lines for one owner and is mutable only while ``active``. Checkout moves it
to ``processing`` and links the order; gateway-confirmed payment moves it to
``completed``. Carts are never deleted: processing and completed carts are
the owner's purchase history.

State Machine:
    ACTIVE → PROCESSING → COMPLETED
    PROCESSING → ACTIVE (linked order missing, or explicit reopen)

Lines are keyed by (product_ref, variant_label). "No variant" has a single
representation, ``None``; see ``normalize_variant``.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartCompleted,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartReopened,
)
from ordering.domain import ordering
from ordering.errors import (
    CartNotModifiable,
    EmptyCart,
    InvalidQuantity,
    InvalidTransition,
    ItemNotFound,
)
from ordering.utils.money import money, to_decimal

# Spellings of "no variant" that reach us from query strings and JS clients
_ABSENT_VARIANTS = {"", "null", "undefined", "none"}


class CartStatus(Enum):
    ACTIVE = "active"
    PROCESSING = "processing"
    COMPLETED = "completed"


def normalize_variant(variant_label):
    """Collapse every representation of "no variant" into ``None``."""
    if variant_label is None:
        return None
    label = str(variant_label).strip()
    if label.lower() in _ABSENT_VARIANTS:
        return None
    return label


def lines_match(line, product_ref, variant_label) -> bool:
    """Two lines are the same logical item iff product and (normalised) variant are equal."""
    return str(line.product_ref) == str(product_ref) and normalize_variant(line.variant_label) == normalize_variant(
        variant_label
    )


@ordering.entity(part_of="Cart")
class CartLine:
    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)
    added_at = DateTime()

    def to_dict(self) -> dict:
        return {
            "productId": str(self.product_ref),
            "variant": self.variant_label,
            "quantity": self.quantity,
            "price": self.unit_price,
            "totalPrice": self.line_total,
        }


@ordering.aggregate
class Cart:
    owner_id = Identifier(required=True)
    lines = HasMany(CartLine)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    linked_order_id = Identifier()
    total_item_count = Integer(default=0)
    total_amount = Float(default=0.0)
    created_at = DateTime()
    last_mutated_at = DateTime()

    @invariant.post
    def processing_cart_must_link_an_order(self):
        if self.status == CartStatus.PROCESSING.value and not self.linked_order_id:
            raise ValidationError({"linked_order_id": ["A processing cart must be linked to an order"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_id):
        now = datetime.now(UTC)
        return cls(
            owner_id=owner_id,
            status=CartStatus.ACTIVE.value,
            total_item_count=0,
            total_amount=0.0,
            created_at=now,
            last_mutated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def can_modify(self) -> bool:
        return self.status == CartStatus.ACTIVE.value

    @property
    def is_processing(self) -> bool:
        return self.status == CartStatus.PROCESSING.value

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def find_line(self, product_ref, variant_label=None):
        return next((line for line in self.lines if lines_match(line, product_ref, variant_label)), None)

    def summary(self) -> dict:
        return {
            "id": str(self.id),
            "owner": str(self.owner_id),
            "items": [line.to_dict() for line in self.lines],
            "totalItems": self.total_item_count,
            "totalAmount": self.total_amount,
            "status": self.status,
            "canModify": self.can_modify,
            "isProcessing": self.is_processing,
            "orderId": str(self.linked_order_id) if self.linked_order_id else None,
            "lastUpdated": self.last_mutated_at.isoformat() if self.last_mutated_at else None,
        }

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------
    def _assert_modifiable(self):
        if not self.can_modify:
            raise CartNotModifiable(
                f"Cannot modify cart with status: {self.status}. Please create a new cart.",
                cartStatus=self.status,
            )

    def _recalculate_totals(self):
        """Rebuild derived totals from the current lines, never incrementally."""
        self.total_item_count = sum(line.quantity for line in self.lines)
        self.total_amount = money(sum((to_decimal(line.line_total) for line in self.lines), to_decimal(0)))

    def _touch(self):
        self.last_mutated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product_ref, quantity, unit_price, variant_label=None):
        """Add ``quantity`` of an item, or increase an existing line.

        An existing line is re-priced at ``unit_price`` (the price resolved
        for this call), not at the price it was first added with.
        """
        self._assert_modifiable()
        if quantity is None or quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1", quantity=quantity)

        variant_label = normalize_variant(variant_label)
        unit_price = money(unit_price)
        existing = self.find_line(product_ref, variant_label)

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                existing.unit_price = unit_price
                existing.line_total = money(to_decimal(existing.quantity) * to_decimal(unit_price))
            else:
                self.add_lines(
                    CartLine(
                        product_ref=product_ref,
                        variant_label=variant_label,
                        quantity=quantity,
                        unit_price=unit_price,
                        line_total=money(to_decimal(quantity) * to_decimal(unit_price)),
                        added_at=datetime.now(UTC),
                    )
                )
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                product_ref=str(product_ref),
                variant_label=variant_label,
                quantity=quantity,
                unit_price=unit_price,
                new_total_amount=self.total_amount,
            )
        )

    def update_quantity(self, product_ref, quantity, variant_label=None):
        """Set a line's quantity, re-totalling at its stored unit price. Zero removes it."""
        self._assert_modifiable()
        if quantity is None or quantity < 0:
            raise InvalidQuantity("Quantity must be zero or more", quantity=quantity)

        variant_label = normalize_variant(variant_label)
        line = self.find_line(product_ref, variant_label)
        if line is None:
            raise ItemNotFound(
                f"Item not found in cart. ProductId: {product_ref}, Variant: {variant_label}",
                productId=str(product_ref),
                variant=variant_label,
            )

        if quantity == 0:
            self.remove_item(product_ref, variant_label)
            return

        previous_quantity = line.quantity
        with atomic_change(self):
            line.quantity = quantity
            line.line_total = money(to_decimal(quantity) * to_decimal(line.unit_price))
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                product_ref=str(product_ref),
                variant_label=variant_label,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_ref, variant_label=None):
        self._assert_modifiable()

        variant_label = normalize_variant(variant_label)
        line = self.find_line(product_ref, variant_label)
        if line is None:
            raise ItemNotFound(
                f"Item not found in cart. ProductId: {product_ref}, Variant: {variant_label}",
                productId=str(product_ref),
                variant=variant_label,
            )

        with atomic_change(self):
            self.remove_lines(line)
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                product_ref=str(product_ref),
                variant_label=variant_label,
            )
        )

    def clear(self):
        self._assert_modifiable()
        if self.is_empty:
            raise EmptyCart("Cart is already empty", cartStatus=self.status)

        removed = len(self.lines)
        with atomic_change(self):
            for line in list(self.lines):
                self.remove_lines(line)
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                lines_removed=removed,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_processing(self, order_id):
        """Checkout created ``order_id`` from this cart."""
        if not self.can_modify:
            raise InvalidTransition(
                f"Cannot mark cart as processing with status: {self.status}",
                cartStatus=self.status,
            )
        if self.is_empty:
            raise EmptyCart("Cannot check out an empty cart", cartStatus=self.status)

        with atomic_change(self):
            self.status = CartStatus.PROCESSING.value
            self.linked_order_id = order_id
            self._touch()

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                order_id=str(order_id),
            )
        )

    def revert_to_active(self, reason):
        """Return a processing cart to active and drop its order link."""
        if not self.is_processing:
            raise InvalidTransition(
                f"Only processing carts can be reopened, cart is {self.status}",
                cartStatus=self.status,
            )

        previous_order_id = self.linked_order_id
        with atomic_change(self):
            self.status = CartStatus.ACTIVE.value
            self.linked_order_id = None
            self._touch()

        self.raise_(
            CartReopened(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                previous_order_id=str(previous_order_id) if previous_order_id else None,
                reason=reason,
            )
        )

    def complete(self):
        """Gateway confirmed payment for the linked order."""
        if self.status == CartStatus.COMPLETED.value:
            return
        if not self.is_processing:
            raise InvalidTransition(
                f"Only processing carts can be completed, cart is {self.status}",
                cartStatus=self.status,
            )

        now = datetime.now(UTC)
        self.status = CartStatus.COMPLETED.value
        self.last_mutated_at = now

        self.raise_(
            CartCompleted(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                order_id=str(self.linked_order_id) if self.linked_order_id else None,
                completed_at=now,
            )
        )

    def retire(self):
        """Close an empty active cart so a reopened cart can take its place."""
        if not self.can_modify or not self.is_empty:
            raise InvalidTransition(
                "Only an empty active cart can be retired",
                cartStatus=self.status,
            )
        self.status = CartStatus.COMPLETED.value
        self._touch()
