"""Pydantic request schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Field names are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_LINE_QUANTITY = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(CamelModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1, le=MAX_LINE_QUANTITY)
    variant: str | None = None

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"productId": "prod-001", "quantity": 2, "variant": "Large"}]},
    )


class UpdateCartRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=0, le=MAX_LINE_QUANTITY)
    variant: str | None = None


class RemoveFromCartRequest(CamelModel):
    product_id: str = Field(min_length=1)
    variant: str | None = None


class CheckoutRequest(CamelModel):
    shipping_cost: float | None = Field(default=None, ge=0)
    shipping_address: ShippingAddressSchema | None = None
    order_id: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "shippingCost": 5.0,
                    "shippingAddress": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zipCode": "62701",
                        "country": "US",
                    },
                }
            ]
        },
    )


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CancelOrderRequest(CamelModel):
    reason: str | None = Field(default=None, max_length=500)


class ShipOrderRequest(CamelModel):
    tracking_number: str | None = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Payment Request Schemas
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(CamelModel):
    order_id: str = Field(min_length=1)


class VerifyPaymentRequest(CamelModel):
    payment_intent_id: str = Field(min_length=1)
