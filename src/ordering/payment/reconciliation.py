"""Payment reconciliation — commands and handler.

Order and cart state move to "paid" only on the gateway's word. The client
never asserts success: it hands back a payment intent id, and the intent's
status as retrieved from the gateway decides what happens.

Gateway status → effect:

    succeeded                order paid and processing, linked cart completed
    requires_payment_method  nothing, retry with another payment method
    requires_action          nothing, customer must finish authentication
    canceled                 payment failed, order cancelled (cart untouched)
    anything else            nothing
"""

from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from notifications.fanout import notify_owner
from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import (
    GatewayFailure,
    InvalidPaymentState,
    InvalidWebhookSignature,
    OrderNotFound,
    PaymentIntentNotFound,
    Unauthorized,
)
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.utils.money import to_minor_units
from payments.gateway import get_gateway
from payments.gateway.port import (
    CANCELED,
    REQUIRES_ACTION,
    REQUIRES_PAYMENT_METHOD,
    SUCCEEDED,
    GatewayError,
    IntentNotFound,
    SignatureVerificationFailed,
)

logger = structlog.get_logger(__name__)

CONFIRMATION_REDIRECT = "/order-confirmation?orderId={order_number}"
RETRY_REDIRECT = "/payment/failed"
ERROR_REDIRECT = "/payment/error"


@ordering.command(part_of="Order")
class CreatePaymentIntent:
    owner_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class VerifyPayment:
    owner_id = Identifier(required=True)
    payment_intent_ref = String(required=True, max_length=255)


@ordering.command(part_of="Order")
class ProcessPaymentWebhook:
    raw_body = Text(required=True, sanitize=False)
    signature = String(max_length=1000, sanitize=False)


@dataclass
class PaymentOutcome:
    success: bool
    message: str
    gateway_status: str
    redirect_url: str
    order: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "paymentStatus": self.gateway_status,
            "redirectUrl": self.redirect_url,
            "order": self.order,
        }


def _intent_response(order, intent) -> dict:
    return {
        "clientSecret": intent.client_secret,
        "paymentIntentId": intent.id,
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "amount": order.total_amount,
        "breakdown": order.breakdown(),
    }


def _order_view(order) -> dict:
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        "paymentStatus": order.payment_status,
        "orderStatus": order.order_status,
        "totalAmount": order.total_amount,
    }


def reconcile(order, intent) -> PaymentOutcome:
    """Apply the gateway-reported status of ``intent`` to ``order`` (and its cart)."""
    status = intent.status

    if status == SUCCEEDED:
        order.mark_payment_completed()
        current_domain.repository_for(Order).add(order)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_by_linked_order(order.id)
        if cart is not None:
            cart.complete()
            cart_repo.add(cart)

        logger.info(
            "Payment confirmed by gateway",
            order_id=str(order.id),
            payment_intent_ref=intent.id,
            cart_id=str(cart.id) if cart is not None else None,
        )
        notify_owner(order.owner_id, "orderUpdated", _order_view(order))
        return PaymentOutcome(
            success=True,
            message="Payment verified and order completed",
            gateway_status=status,
            redirect_url=CONFIRMATION_REDIRECT.format(order_number=order.order_number),
            order=_order_view(order),
        )

    if status == CANCELED:
        if order.payment_status != PaymentStatus.FAILED.value:
            order.mark_payment_failed(gateway_status=status)
            current_domain.repository_for(Order).add(order)
            logger.info("Payment canceled at gateway", order_id=str(order.id), payment_intent_ref=intent.id)
            notify_owner(order.owner_id, "orderUpdated", _order_view(order))
        return PaymentOutcome(
            success=False,
            message="Payment was canceled",
            gateway_status=status,
            redirect_url=ERROR_REDIRECT,
            order=_order_view(order),
        )

    if status == REQUIRES_PAYMENT_METHOD:
        message, redirect_url = "Payment failed - requires new payment method", RETRY_REDIRECT
    elif status == REQUIRES_ACTION:
        message, redirect_url = "Payment requires additional action", RETRY_REDIRECT
    else:
        message, redirect_url = f"Payment is in {status} status", ERROR_REDIRECT

    return PaymentOutcome(
        success=False,
        message=message,
        gateway_status=status,
        redirect_url=redirect_url,
        order=_order_view(order),
    )


def _retrieve(gateway, intent_ref):
    try:
        return gateway.retrieve_intent(intent_ref)
    except IntentNotFound as exc:
        raise PaymentIntentNotFound("Payment intent not found", paymentIntentId=intent_ref) from exc
    except GatewayError as exc:
        raise GatewayFailure("Payment gateway unavailable, please retry", error=str(exc)) from exc


@ordering.command_handler(part_of=Order)
class ReconcilePaymentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_owned(command.order_id, command.owner_id)
        if order.order_status == OrderStatus.CANCELLED.value:
            raise InvalidPaymentState(
                "Cannot create payment for a cancelled order",
                paymentStatus=order.payment_status,
                orderStatus=order.order_status,
            )
        gateway = get_gateway()
        amount = to_minor_units(order.total_amount)

        if order.payment_intent_ref and order.payment_status == PaymentStatus.PROCESSING.value:
            try:
                intent = gateway.retrieve_intent(order.payment_intent_ref)
                if intent.is_usable:
                    if intent.amount != amount:
                        intent = gateway.update_intent_amount(intent.id, amount)
                    logger.info("Reusing payment intent", order_id=str(order.id), payment_intent_ref=intent.id)
                    return _intent_response(order, intent)
            except GatewayError as exc:
                logger.warning(
                    "Could not reuse payment intent, creating a new one",
                    order_id=str(order.id),
                    payment_intent_ref=order.payment_intent_ref,
                    error=str(exc),
                )

        if not order.can_pay:
            raise InvalidPaymentState(
                f"Cannot create payment for order with payment status: {order.payment_status}",
                paymentStatus=order.payment_status,
            )

        try:
            intent = gateway.create_intent(
                amount=amount,
                currency=order.currency,
                metadata={
                    "orderId": str(order.id),
                    "orderNumber": order.order_number,
                    "userId": str(command.owner_id),
                },
                idempotency_key=f"order-{order.id}-{order.payment_intent_ref or 'initial'}-{amount}",
            )
        except GatewayError as exc:
            raise GatewayFailure("Payment gateway unavailable, please retry", error=str(exc)) from exc

        order.attach_payment_intent(intent.id)
        repo.add(order)

        logger.info(
            "Payment intent created",
            order_id=str(order.id),
            payment_intent_ref=intent.id,
            amount=amount,
        )
        return _intent_response(order, intent)

    @handle(VerifyPayment)
    def verify_payment(self, command):
        intent = _retrieve(get_gateway(), command.payment_intent_ref)

        order = current_domain.repository_for(Order).find_by_payment_intent(command.payment_intent_ref)
        if order is None:
            raise OrderNotFound("Order not found for this payment", paymentIntentId=command.payment_intent_ref)
        if not order.is_owned_by(command.owner_id):
            raise Unauthorized("Unauthorized access to order")

        return reconcile(order, intent)

    @handle(ProcessPaymentWebhook)
    def process_payment_webhook(self, command):
        gateway = get_gateway()
        try:
            event = gateway.construct_webhook_event(command.raw_body.encode("utf-8"), command.signature or "")
        except SignatureVerificationFailed as exc:
            raise InvalidWebhookSignature("Invalid webhook signature") from exc

        if not event.type.startswith("payment_intent.") or not event.payment_intent_id:
            logger.debug("Ignoring webhook event", event_id=event.id, event_type=event.type)
            return {"received": True, "handled": False}

        order = current_domain.repository_for(Order).find_by_payment_intent(event.payment_intent_id)
        if order is None:
            logger.warning(
                "Webhook for unknown payment intent",
                event_id=event.id,
                payment_intent_ref=event.payment_intent_id,
            )
            return {"received": True, "handled": False}

        # The event body is only a hint; the intent's current status is authoritative
        intent = _retrieve(gateway, event.payment_intent_id)
        outcome = reconcile(order, intent)
        logger.info(
            "Webhook reconciled",
            event_id=event.id,
            event_type=event.type,
            order_id=str(order.id),
            gateway_status=outcome.gateway_status,
        )
        return {"received": True, "handled": True, "paymentStatus": outcome.gateway_status}
