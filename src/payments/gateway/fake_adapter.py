"""Configurable fake payment gateway for development and testing.

This adapter simulates a payment-intent gateway without any external calls.
Intents live in memory and their status is driven from tests to simulate
what the customer did on the payment page:
- ``set_status(intent_id, "succeeded")`` after a successful card payment
- ``set_status(intent_id, "canceled")`` when the intent was abandoned
- ``configure(available=False)`` to simulate an unreachable gateway

Follows the same pattern as Stripe's test mode but simplified.
"""

import json
from dataclasses import replace
from uuid import uuid4

from payments.gateway.port import (
    REQUIRES_PAYMENT_METHOD,
    GatewayError,
    IntentNotFound,
    PaymentGateway,
    PaymentIntent,
    SignatureVerificationFailed,
    WebhookEvent,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.available: bool = True
        self.intents: dict[str, PaymentIntent] = {}
        self.calls: list[dict] = []

    def configure(self, available: bool = True) -> None:
        """Configure gateway behavior at runtime."""
        self.available = available

    def _check_available(self) -> None:
        if not self.available:
            raise GatewayError("Payment gateway unreachable")

    def set_status(self, intent_id: str, status: str) -> PaymentIntent:
        """Simulate a customer-side status change on an intent."""
        intent = replace(self.intents[intent_id], status=status)
        self.intents[intent_id] = intent
        return intent

    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "metadata": metadata,
                "idempotency_key": idempotency_key,
            }
        )
        self._check_available()

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            status=REQUIRES_PAYMENT_METHOD,
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self.calls.append({"method": "retrieve_intent", "intent_id": intent_id})
        self._check_available()

        intent = self.intents.get(intent_id)
        if intent is None:
            raise IntentNotFound(f"No such payment_intent: {intent_id}")
        return intent

    def update_intent_amount(self, intent_id: str, amount: int) -> PaymentIntent:
        self.calls.append({"method": "update_intent_amount", "intent_id": intent_id, "amount": amount})
        self._check_available()

        if intent_id not in self.intents:
            raise IntentNotFound(f"No such payment_intent: {intent_id}")
        intent = replace(self.intents[intent_id], amount=amount)
        self.intents[intent_id] = intent
        return intent

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != TEST_SIGNATURE:
            raise SignatureVerificationFailed("Invalid webhook signature")

        event = json.loads(payload)
        data_object = event.get("data", {}).get("object", {})
        return WebhookEvent(
            id=event.get("id", f"evt_fake_{uuid4().hex[:12]}"),
            type=event.get("type", ""),
            payment_intent_id=data_object.get("id"),
        )
