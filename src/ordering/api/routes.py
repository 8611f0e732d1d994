"""FastAPI routes for the Ordering domain — cart, orders and payment."""

import json

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.api.dependencies import CurrentUser, cart_rate_limit, current_user, require_admin
from ordering.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CheckoutRequest,
    CreatePaymentIntentRequest,
    RemoveFromCartRequest,
    ShipOrderRequest,
    UpdateCartRequest,
    VerifyPaymentRequest,
)
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ReopenCart, cart_history, current_cart_view
from ordering.checkout.checkout import Checkout
from ordering.errors import OrderNotFound
from ordering.order.cancellation import CancelOrder
from ordering.order.fulfillment import DeliverOrder, ShipOrder
from ordering.order.order import Order
from ordering.payment.reconciliation import CreatePaymentIntent, ProcessPaymentWebhook, VerifyPayment


def _ok(data, message: str | None = None) -> dict:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
def get_cart(user: CurrentUser = Depends(current_user)) -> dict:
    return _ok(current_cart_view(user.id))


@cart_router.get("/history")
def get_cart_history(user: CurrentUser = Depends(current_user)) -> dict:
    return _ok(cart_history(user.id))


@cart_router.post("/add")
def add_to_cart(body: AddToCartRequest, user: CurrentUser = Depends(cart_rate_limit)) -> dict:
    command = AddToCart(
        owner_id=user.id,
        product_ref=body.product_id,
        quantity=body.quantity,
        variant_label=body.variant,
    )
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Item added to cart")


@cart_router.put("/update")
def update_cart_item(body: UpdateCartRequest, user: CurrentUser = Depends(cart_rate_limit)) -> dict:
    command = UpdateCartQuantity(
        owner_id=user.id,
        product_ref=body.product_id,
        quantity=body.quantity,
        variant_label=body.variant,
    )
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Cart updated")


@cart_router.delete("/remove")
def remove_cart_item(body: RemoveFromCartRequest, user: CurrentUser = Depends(cart_rate_limit)) -> dict:
    command = RemoveFromCart(owner_id=user.id, product_ref=body.product_id, variant_label=body.variant)
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Item removed from cart")


@cart_router.delete("/clear")
def clear_cart(user: CurrentUser = Depends(cart_rate_limit)) -> dict:
    result = current_domain.process(ClearCart(owner_id=user.id), asynchronous=False)
    return _ok(result, "Cart cleared")


@cart_router.post("/reopen")
def reopen_cart(user: CurrentUser = Depends(cart_rate_limit)) -> dict:
    result = current_domain.process(ReopenCart(owner_id=user.id), asynchronous=False)
    return _ok(result, "Cart reopened")


@cart_router.post("/checkout")
def checkout(
    body: CheckoutRequest | None = None,
    user: CurrentUser = Depends(cart_rate_limit),
) -> dict:
    body = body or CheckoutRequest()
    command = Checkout(
        owner_id=user.id,
        shipping_cost=body.shipping_cost,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        order_id=body.order_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Checkout successful")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("")
def list_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: CurrentUser = Depends(current_user),
) -> dict:
    orders, total = current_domain.repository_for(Order).find_for_owner(user.id, page=page, limit=limit)
    return {
        "success": True,
        "data": [order.summary() for order in orders],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@order_router.get("/number/{order_number}")
def get_order_by_number(order_number: str, user: CurrentUser = Depends(current_user)) -> dict:
    order = current_domain.repository_for(Order).find_by_number(order_number)
    if order is None or not order.is_owned_by(user.id):
        raise OrderNotFound("Order not found", orderNumber=order_number)
    return _ok(order.summary())


@order_router.get("/{order_id}")
def get_order(order_id: str, user: CurrentUser = Depends(current_user)) -> dict:
    order = current_domain.repository_for(Order).get_owned(order_id, user.id)
    return _ok(order.summary())


@order_router.get("/{order_id}/payment")
def get_order_for_payment(order_id: str, user: CurrentUser = Depends(current_user)) -> dict:
    order = current_domain.repository_for(Order).get_owned(order_id, user.id)
    return _ok({**order.summary(), "canPay": order.can_pay})


@order_router.post("/{order_id}/cancel")
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    user: CurrentUser = Depends(current_user),
) -> dict:
    body = body or CancelOrderRequest()
    command = CancelOrder(owner_id=user.id, order_id=order_id, reason=body.reason)
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Order cancelled successfully")


@order_router.post("/{order_id}/ship")
def ship_order(
    order_id: str,
    body: ShipOrderRequest | None = None,
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    body = body or ShipOrderRequest()
    command = ShipOrder(order_id=order_id, tracking_number=body.tracking_number)
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Order shipped")


@order_router.post("/{order_id}/deliver")
def deliver_order(order_id: str, _admin: CurrentUser = Depends(require_admin)) -> dict:
    result = current_domain.process(DeliverOrder(order_id=order_id), asynchronous=False)
    return _ok(result, "Order delivered")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payment", tags=["payment"])


@payment_router.post("/create-intent")
def create_payment_intent(body: CreatePaymentIntentRequest, user: CurrentUser = Depends(current_user)) -> dict:
    command = CreatePaymentIntent(owner_id=user.id, order_id=body.order_id)
    result = current_domain.process(command, asynchronous=False)
    return _ok(result, "Payment intent created successfully")


@payment_router.post("/verify")
def verify_payment(body: VerifyPaymentRequest, user: CurrentUser = Depends(current_user)) -> JSONResponse:
    command = VerifyPayment(owner_id=user.id, payment_intent_ref=body.payment_intent_id)
    outcome = current_domain.process(command, asynchronous=False)
    return JSONResponse(status_code=200 if outcome.success else 400, content=outcome.to_dict())


@payment_router.post("/webhook")
async def payment_webhook(request: Request, stripe_signature: str = Header(default="")) -> dict:
    """Gateway callback. Authenticated by signature, not by caller identity.

    The raw body is read on the event loop; processing runs in the threadpool.
    """
    raw_body = await request.body()
    command = ProcessPaymentWebhook(raw_body=raw_body.decode("utf-8"), signature=stripe_signature)
    return await run_in_threadpool(current_domain.process, command, asynchronous=False)
