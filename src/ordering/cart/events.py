"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product (or product variant) was added to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    new_total_amount = Float(required=True)


@ordering.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)


@ordering.event(part_of="Cart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    lines_removed = Integer(required=True)


@ordering.event(part_of="Cart")
class CartCheckedOut:
    """The cart was checked out into an order and is awaiting payment."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartReopened:
    """A processing cart went back to active (orphaned order or explicit reopen)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    previous_order_id = Identifier()
    reason = String(max_length=255, sanitize=False)


@ordering.event(part_of="Cart")
class CartCompleted:
    """Payment for the cart's order was confirmed by the gateway."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    order_id = Identifier()
    completed_at = DateTime(required=True)
