"""Cart item management — commands and handler.

All commands are scoped to the owner's active cart; there is no cart id on
the wire. ``AddToCart`` creates the active cart when the owner has none, but
not while a checkout is pending.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from catalogue.lookup import get_catalog
from notifications.fanout import notify_owner
from ordering.cart.cart import Cart, normalize_variant
from ordering.domain import ordering
from ordering.errors import (
    CartNotModifiable,
    DuplicateActiveCart,
    InsufficientStock,
    InvalidQuantity,
    NoCart,
    ProductNotFound,
    ProductUnavailable,
    VariantNotFound,
)

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class AddToCart:
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    quantity = Integer(default=1)
    variant_label = String(max_length=50, sanitize=False)


@ordering.command(part_of="Cart")
class UpdateCartQuantity:
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    quantity = Integer(required=True)
    variant_label = String(max_length=50, sanitize=False)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    owner_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    variant_label = String(max_length=50, sanitize=False)


@ordering.command(part_of="Cart")
class ClearCart:
    owner_id = Identifier(required=True)


def resolve_unit_price(product_ref, variant_label, quantity) -> float:
    """Ask the catalogue for the current price of a product (or variant)."""
    resolution = get_catalog().resolve(str(product_ref), variant_label)

    if not resolution.found:
        raise ProductNotFound("Product not found", productId=str(product_ref))
    if not resolution.is_active:
        raise ProductUnavailable("Product is not available for purchase", productId=str(product_ref))
    if not resolution.variant_found:
        raise VariantNotFound("Product variant not found", productId=str(product_ref), variant=variant_label)
    if resolution.stock is not None and resolution.stock < quantity:
        raise InsufficientStock("Insufficient stock", productId=str(product_ref), available=resolution.stock)

    return resolution.unit_price


def load_modifiable_cart(repo, owner_id, create_missing: bool = False) -> Cart:
    """The cart the owner is working on, or the reason it cannot be modified.

    This is the cart the owner sees: an active cart holding items, otherwise a
    processing cart awaiting payment, which refuses every mutation until it is
    paid or reopened. An empty active cart does not mask a pending checkout.
    """
    cart = repo.find_active(owner_id)
    if cart is not None and not cart.is_empty:
        return cart

    pending = repo.find_latest_processing(owner_id)
    if pending is not None:
        raise CartNotModifiable(
            f"Cannot modify cart with status: {pending.status}. Complete payment or reopen the cart.",
            cartStatus=pending.status,
            orderId=str(pending.linked_order_id),
        )

    if cart is not None:
        return cart
    if create_missing:
        return Cart.create(owner_id=owner_id)
    raise NoCart("Cart not found")


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        quantity = command.quantity if command.quantity is not None else 1
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1", quantity=quantity)

        variant_label = normalize_variant(command.variant_label)
        unit_price = resolve_unit_price(command.product_ref, variant_label, quantity)

        repo = current_domain.repository_for(Cart)
        for attempt in range(2):
            cart = load_modifiable_cart(repo, command.owner_id, create_missing=True)
            cart.add_item(
                product_ref=command.product_ref,
                quantity=quantity,
                unit_price=unit_price,
                variant_label=variant_label,
            )
            try:
                repo.add(cart)
                break
            except DuplicateActiveCart:
                # Another request created the active cart first; apply to that one
                if attempt:
                    raise
                logger.info("Concurrent active cart creation, retrying on winner", owner_id=str(command.owner_id))

        logger.info(
            "Cart item added",
            owner_id=str(command.owner_id),
            cart_id=str(cart.id),
            product_ref=str(command.product_ref),
            variant_label=variant_label,
            quantity=quantity,
        )
        summary = cart.summary()
        notify_owner(
            command.owner_id,
            "cartUpdated",
            {
                "type": "ITEM_ADDED",
                "cart": summary,
                "addedItem": {
                    "productId": str(command.product_ref),
                    "quantity": quantity,
                    "variant": variant_label,
                    "price": unit_price,
                },
            },
        )
        return summary

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = load_modifiable_cart(repo, command.owner_id)
        cart.update_quantity(
            product_ref=command.product_ref,
            quantity=command.quantity,
            variant_label=command.variant_label,
        )
        repo.add(cart)

        summary = cart.summary()
        notify_owner(command.owner_id, "cartUpdated", {"type": "ITEM_UPDATED", "cart": summary})
        return summary

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = load_modifiable_cart(repo, command.owner_id)
        cart.remove_item(product_ref=command.product_ref, variant_label=command.variant_label)
        repo.add(cart)

        summary = cart.summary()
        notify_owner(command.owner_id, "cartUpdated", {"type": "ITEM_REMOVED", "cart": summary})
        return summary

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = load_modifiable_cart(repo, command.owner_id)
        cart.clear()
        repo.add(cart)

        summary = cart.summary()
        notify_owner(command.owner_id, "cartUpdated", {"type": "CART_CLEARED", "cart": summary})
        return summary
