"""Tests for the payment provider adapters."""

import json
from types import SimpleNamespace
from unittest import mock

import pytest
import stripe
from ordering.errors import PaymentProviderUnavailable
from ordering.gateway.fake_adapter import TEST_SIGNATURE, FakePaymentProvider
from ordering.gateway.port import SessionLineItem
from ordering.gateway.stripe_adapter import StripePaymentProvider
from protean.exceptions import ObjectNotFoundError, ValidationError


def _lines():
    return [
        SessionLineItem(product_id="prod-001", title="Tote", quantity=2, unit_amount=2500),
        SessionLineItem(product_id="prod-002", title="Mug", quantity=1, unit_amount=999),
    ]


def _create(provider, discount=None):
    return provider.create_session(
        line_items=_lines(),
        metadata={"customer_id": "cust-001", "coupon_code": ""},
        success_url="http://shop/success",
        cancel_url="http://shop/cancel",
        discount_percentage=discount,
    )


class TestFakePaymentProvider:
    def test_new_session_is_unpaid(self):
        session = _create(FakePaymentProvider())
        assert session.session_id.startswith("cs_test_")
        assert session.paid is False
        assert session.amount_total == 5999

    def test_discount_is_rounded_to_cents(self):
        session = _create(FakePaymentProvider(), discount=10)
        assert session.amount_total == 5999 - 600

    def test_mark_paid(self):
        provider = FakePaymentProvider()
        session = _create(provider)
        provider.mark_paid(session.session_id)
        retrieved = provider.retrieve_session(session.session_id)
        assert retrieved.paid is True
        assert retrieved.metadata["customer_id"] == "cust-001"

    def test_unknown_session(self):
        with pytest.raises(ObjectNotFoundError):
            FakePaymentProvider().retrieve_session("cs_missing")

    def test_webhook_with_valid_signature(self):
        payload = json.dumps({"type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}})
        event = FakePaymentProvider().construct_webhook_event(payload.encode(), TEST_SIGNATURE)
        assert event.event_type == "checkout.session.completed"
        assert event.session_id == "cs_1"

    def test_webhook_with_bad_signature(self):
        assert FakePaymentProvider().construct_webhook_event(b"{}", "forged") is None


@pytest.fixture()
def stripe_client():
    with mock.patch("ordering.gateway.stripe_adapter.stripe.StripeClient") as client_cls:
        yield client_cls.return_value


def _stripe_provider():
    return StripePaymentProvider(api_key="sk_test_123", webhook_secret="whsec_test")


def _stripe_session(**overrides):
    values = {
        "id": "cs_live_1",
        "payment_status": "paid",
        "amount_total": 4500,
        "metadata": {"customer_id": "cust-001"},
        "url": "https://checkout.stripe.com/c/pay/cs_live_1",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestStripePaymentProvider:
    def test_create_session_sends_line_items_and_metadata(self, stripe_client):
        stripe_client.checkout.sessions.create.return_value = _stripe_session(payment_status="unpaid")
        session = _create(_stripe_provider())

        params = stripe_client.checkout.sessions.create.call_args.kwargs["params"]
        assert params["mode"] == "payment"
        assert params["line_items"][0]["price_data"]["unit_amount"] == 2500
        assert params["line_items"][0]["quantity"] == 2
        assert params["metadata"]["customer_id"] == "cust-001"
        assert "discounts" not in params
        assert session.paid is False

    def test_discount_creates_one_time_coupon(self, stripe_client):
        stripe_client.coupons.create.return_value = SimpleNamespace(id="coupon_1")
        stripe_client.checkout.sessions.create.return_value = _stripe_session(payment_status="unpaid")
        _create(_stripe_provider(), discount=10)

        coupon_params = stripe_client.coupons.create.call_args.kwargs["params"]
        assert coupon_params == {"percent_off": 10, "duration": "once"}
        params = stripe_client.checkout.sessions.create.call_args.kwargs["params"]
        assert params["discounts"] == [{"coupon": "coupon_1"}]

    def test_retrieve_paid_session(self, stripe_client):
        stripe_client.checkout.sessions.retrieve.return_value = _stripe_session()
        session = _stripe_provider().retrieve_session("cs_live_1")
        assert session.paid is True
        assert session.amount_total == 4500
        assert session.metadata == {"customer_id": "cust-001"}

    def test_missing_session_is_not_found(self, stripe_client):
        stripe_client.checkout.sessions.retrieve.side_effect = stripe.InvalidRequestError(
            "No such checkout.session", param="id", code="resource_missing"
        )
        with pytest.raises(ObjectNotFoundError):
            _stripe_provider().retrieve_session("cs_missing")

    def test_invalid_request_is_validation_error(self, stripe_client):
        stripe_client.checkout.sessions.create.side_effect = stripe.InvalidRequestError(
            "Invalid currency", param="currency"
        )
        with pytest.raises(ValidationError):
            _create(_stripe_provider())

    def test_connection_error_is_unavailable(self, stripe_client):
        stripe_client.checkout.sessions.retrieve.side_effect = stripe.APIConnectionError("timeout")
        with pytest.raises(PaymentProviderUnavailable):
            _stripe_provider().retrieve_session("cs_live_1")

    def test_bad_webhook_signature_returns_none(self, stripe_client):
        with mock.patch(
            "ordering.gateway.stripe_adapter.stripe.Webhook.construct_event",
            side_effect=stripe.SignatureVerificationError("bad", "sig"),
        ):
            assert _stripe_provider().construct_webhook_event(b"{}", "sig") is None

    def test_completed_webhook_names_session(self, stripe_client):
        event = SimpleNamespace(
            type="checkout.session.completed",
            data=SimpleNamespace(object=SimpleNamespace(id="cs_live_1")),
        )
        with mock.patch("ordering.gateway.stripe_adapter.stripe.Webhook.construct_event", return_value=event):
            parsed = _stripe_provider().construct_webhook_event(b"{}", "sig")
        assert parsed.event_type == "checkout.session.completed"
        assert parsed.session_id == "cs_live_1"
