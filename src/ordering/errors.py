"""Domain errors for the Ordering context.

Every error carries a stable machine-readable ``kind``, a human-readable
message, the HTTP status the API layer answers with, and optional extra
fields (current cart status, payment status, ...) that let a client decide
whether to retry, refresh, or start a new cart.
"""


class DomainError(Exception):
    kind = "DomainError"
    status_code = 400
    suggestion: str | None = None

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"success": False, "kind": self.kind, "message": self.message, **self.extra}
        if self.suggestion:
            body["suggestion"] = self.suggestion
        return body


# ---------------------------------------------------------------------------
# Validation / not found
# ---------------------------------------------------------------------------
class InvalidQuantity(DomainError):
    kind = "InvalidQuantity"


class ProductNotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class ProductUnavailable(DomainError):
    kind = "Unavailable"


class VariantNotFound(DomainError):
    kind = "VariantNotFound"


class InsufficientStock(DomainError):
    kind = "InsufficientStock"


class NoCart(DomainError):
    kind = "NoCart"
    status_code = 404
    suggestion = "Add an item to start a new cart"


class ItemNotFound(DomainError):
    kind = "ItemNotFound"
    status_code = 404


class OrderNotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class PaymentIntentNotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class Unauthorized(DomainError):
    kind = "Unauthorized"
    status_code = 403


# ---------------------------------------------------------------------------
# Domain state
# ---------------------------------------------------------------------------
class CartNotModifiable(DomainError):
    kind = "CartNotModifiable"
    suggestion = "Complete payment for the pending order, or reopen the cart"


class EmptyCart(DomainError):
    kind = "EmptyCart"


class InvalidTransition(DomainError):
    kind = "InvalidTransition"


class AlreadyCancelled(DomainError):
    kind = "AlreadyCancelled"


class InvalidPaymentState(DomainError):
    kind = "InvalidState"


class DuplicateActiveCart(DomainError):
    kind = "DuplicateActiveCart"
    status_code = 409
    suggestion = "Re-read the cart and retry"


# ---------------------------------------------------------------------------
# Boundary / upstream
# ---------------------------------------------------------------------------
class RateLimited(DomainError):
    kind = "RateLimited"
    status_code = 429
    suggestion = "Too many cart operations. Please slow down."


class InvalidWebhookSignature(DomainError):
    kind = "InvalidSignature"
    status_code = 401


class GatewayFailure(DomainError):
    kind = "GatewayError"
    status_code = 502


class UpstreamUnavailable(DomainError):
    kind = "UpstreamUnavailable"
    status_code = 503
