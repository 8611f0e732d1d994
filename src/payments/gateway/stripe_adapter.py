"""Stripe payment gateway adapter.

Uses the stripe-python SDK to create, retrieve and re-price PaymentIntents
and to verify webhook signatures with the endpoint's signing secret. SDK
errors are translated into the gateway port's exceptions so no Stripe type
leaks into the ordering context.
"""

import stripe
import structlog

from payments.gateway.port import (
    GatewayError,
    IntentNotFound,
    PaymentGateway,
    PaymentIntent,
    SignatureVerificationFailed,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)


def _to_intent(obj) -> PaymentIntent:
    metadata = getattr(obj, "metadata", None) or {}
    return PaymentIntent(
        id=obj.id,
        status=obj.status,
        amount=obj.amount,
        currency=obj.currency,
        client_secret=getattr(obj, "client_secret", None),
        metadata={key: metadata[key] for key in metadata.keys()},
    )


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe create_intent failed", error=str(exc))
            raise GatewayError(str(exc)) from exc
        return _to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == "resource_missing":
                raise IntentNotFound(str(exc)) from exc
            raise GatewayError(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error("Stripe retrieve_intent failed", intent_id=intent_id, error=str(exc))
            raise GatewayError(str(exc)) from exc
        return _to_intent(intent)

    def update_intent_amount(self, intent_id: str, amount: int) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.modify(intent_id, amount=amount, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == "resource_missing":
                raise IntentNotFound(str(exc)) from exc
            raise GatewayError(str(exc)) from exc
        except stripe.StripeError as exc:
            raise GatewayError(str(exc)) from exc
        return _to_intent(intent)

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationFailed(str(exc)) from exc
        except ValueError as exc:
            # Payload is not valid JSON
            raise SignatureVerificationFailed(str(exc)) from exc

        data_object = event.data.object
        intent_id = data_object.id if getattr(data_object, "object", None) == "payment_intent" else None
        return WebhookEvent(id=event.id, type=event.type, payment_intent_id=intent_id)
