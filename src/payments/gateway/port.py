"""Payment gateway port (abstract interface).

Defines the payment-intent contract that all gateway adapters implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Gateway-reported payment intent statuses the ordering context reacts to
SUCCEEDED = "succeeded"
REQUIRES_PAYMENT_METHOD = "requires_payment_method"
REQUIRES_ACTION = "requires_action"
CANCELED = "canceled"


class GatewayError(Exception):
    """The gateway could not be reached or answered with an unusable response."""


class IntentNotFound(GatewayError):
    """The gateway has no payment intent with the requested id."""


class SignatureVerificationFailed(GatewayError):
    """A webhook payload could not be authenticated."""


@dataclass(frozen=True)
class PaymentIntent:
    """A gateway payment intent, as seen by the ordering context."""

    id: str
    status: str
    amount: int  # Minor currency units
    currency: str
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        return self.status != CANCELED


@dataclass(frozen=True)
class WebhookEvent:
    """An authenticated gateway webhook notification."""

    id: str
    type: str
    payment_intent_id: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch an intent's current state. Raises IntentNotFound when absent."""
        ...

    @abstractmethod
    def update_intent_amount(self, intent_id: str, amount: int) -> PaymentIntent:
        """Re-price a not-yet-confirmed intent."""
        ...

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """Authenticate and parse a webhook payload.

        Raises SignatureVerificationFailed when the signature does not match.
        """
        ...
