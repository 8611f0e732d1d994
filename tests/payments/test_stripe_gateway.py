"""Tests for the Stripe gateway adapter with the SDK patched out."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe
from payments.gateway.port import GatewayError, IntentNotFound, SignatureVerificationFailed
from payments.gateway.stripe_adapter import StripeGateway


def _stripe_intent(**overrides):
    fields = {
        "id": "pi_123",
        "status": "requires_payment_method",
        "amount": 2660,
        "currency": "usd",
        "client_secret": "pi_123_secret_abc",
        "metadata": {"orderId": "ord-1"},
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture()
def gateway():
    return StripeGateway(api_key="sk_test_123", webhook_secret="whsec_123")


class TestStripeGateway:
    def test_create_intent(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.PaymentIntent.create") as create:
            create.return_value = _stripe_intent()
            intent = gateway.create_intent(
                amount=2660, currency="usd", metadata={"orderId": "ord-1"}, idempotency_key="order-1-initial-2660"
            )

        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret_abc"
        assert intent.metadata == {"orderId": "ord-1"}
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 2660
        assert kwargs["idempotency_key"] == "order-1-initial-2660"
        assert kwargs["automatic_payment_methods"] == {"enabled": True}
        assert kwargs["api_key"] == "sk_test_123"

    def test_create_intent_sdk_error(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.PaymentIntent.create") as create:
            create.side_effect = stripe.APIConnectionError("Network down")
            with pytest.raises(GatewayError):
                gateway.create_intent(amount=100, currency="usd", metadata={})

    def test_retrieve_intent(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.PaymentIntent.retrieve") as retrieve:
            retrieve.return_value = _stripe_intent(status="succeeded")
            intent = gateway.retrieve_intent("pi_123")

        assert intent.status == "succeeded"
        retrieve.assert_called_once_with("pi_123", api_key="sk_test_123")

    def test_retrieve_missing_intent(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.PaymentIntent.retrieve") as retrieve:
            retrieve.side_effect = stripe.InvalidRequestError(
                "No such payment_intent: 'pi_x'", "intent", code="resource_missing"
            )
            with pytest.raises(IntentNotFound):
                gateway.retrieve_intent("pi_x")

    def test_update_amount(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.PaymentIntent.modify") as modify:
            modify.return_value = _stripe_intent(amount=3160)
            intent = gateway.update_intent_amount("pi_123", 3160)

        assert intent.amount == 3160
        modify.assert_called_once_with("pi_123", amount=3160, api_key="sk_test_123")

    def test_webhook_event(self, gateway):
        event = SimpleNamespace(
            id="evt_1",
            type="payment_intent.succeeded",
            data=SimpleNamespace(object=SimpleNamespace(id="pi_123", object="payment_intent")),
        )
        with patch("payments.gateway.stripe_adapter.stripe.Webhook.construct_event", return_value=event) as construct:
            result = gateway.construct_webhook_event(b"{}", "t=1,v1=abc")

        assert result.payment_intent_id == "pi_123"
        construct.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_123")

    def test_webhook_for_other_objects(self, gateway):
        event = SimpleNamespace(
            id="evt_2",
            type="charge.refunded",
            data=SimpleNamespace(object=SimpleNamespace(id="ch_1", object="charge")),
        )
        with patch("payments.gateway.stripe_adapter.stripe.Webhook.construct_event", return_value=event):
            assert gateway.construct_webhook_event(b"{}", "sig").payment_intent_id is None

    def test_webhook_bad_signature(self, gateway):
        with patch("payments.gateway.stripe_adapter.stripe.Webhook.construct_event") as construct:
            construct.side_effect = stripe.SignatureVerificationError("Bad signature", "sig")
            with pytest.raises(SignatureVerificationFailed):
                gateway.construct_webhook_event(b"{}", "sig")
