import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest
import stripe

from storefront.domain.errors import (
    ErrorKind,
    PaymentNotCompleted,
    PaymentProviderUnavailable,
    WebhookSignatureInvalid,
)
from storefront.services.checkout_service import to_minor_units
from storefront.services.payments import FakeGateway, LineItem, StripeGateway, build_gateway
from tests.conftest import sessions_client

SECRET = "whsec_unit"


def stripe_signature(payload: bytes, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture()
def stripe_gateway():
    return StripeGateway(api_key="sk_test_unit", webhook_secret=SECRET, timeout=5)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr("tenacity.nap.time.sleep", lambda seconds: None)


class TestMinorUnits:
    @pytest.mark.parametrize("amount,expected", [("80.00", 8000), ("2", 200), ("19.995", 2000), ("0.01", 1)])
    def test_rounds_half_up_to_cents(self, amount, expected):
        assert to_minor_units(Decimal(amount)) == expected


class TestBuildGateway:
    def test_fake_without_key(self):
        assert isinstance(build_gateway(api_key="", webhook_secret=""), FakeGateway)

    def test_stripe_with_key(self):
        assert isinstance(build_gateway(api_key="sk_test_x", webhook_secret=SECRET), StripeGateway)


class TestFakeGateway:
    def test_sessions_start_unpaid(self):
        gateway = FakeGateway()

        session = gateway.create_checkout_session(
            [LineItem(name="Nike Dunk Low", unit_amount=6800, quantity=1)],
            {"cart_id": 3},
            "https://shop/success",
            "https://shop/cart",
        )

        assert not gateway.retrieve_checkout_session(session.id).is_paid
        assert session.metadata == {"cart_id": "3"}
        assert gateway.mark_paid(session.id).is_paid

    def test_webhook_signature(self):
        gateway = FakeGateway(webhook_secret=SECRET)
        body = json.dumps({"id": "evt", "type": "ping", "data": {"object": {"id": "x"}}}).encode()

        event = gateway.construct_webhook_event(body, gateway.sign(body))

        assert (event.type, event.data) == ("ping", {"id": "x"})
        with pytest.raises(WebhookSignatureInvalid):
            gateway.construct_webhook_event(body, FakeGateway(webhook_secret="other").sign(body))


class TestStripeGateway:
    def test_create_session_sends_price_data(self, stripe_gateway, monkeypatch):
        captured = {}

        def create(params=None, options=None):
            captured.update(params)
            return {"id": "cs_live_1", "url": "https://checkout.stripe.com/c/cs_live_1", "payment_status": "unpaid", "metadata": params["metadata"]}

        monkeypatch.setattr(stripe_gateway, "client", sessions_client(create=create))

        session = stripe_gateway.create_checkout_session(
            [LineItem(name="Delivery Fee", description="Standard Delivery", unit_amount=200, quantity=1)],
            {"cart_id": "9", "user_id": "", "total_amount": "2.00"},
            "https://shop/checkout/success?session_id={CHECKOUT_SESSION_ID}",
            "https://shop/cart",
            customer_email="buyer@example.com",
        )

        assert session.id == "cs_live_1"
        assert captured["mode"] == "payment"
        assert captured["customer_email"] == "buyer@example.com"
        line = captured["line_items"][0]
        assert line["price_data"]["unit_amount"] == 200
        assert line["price_data"]["currency"] == "usd"
        assert line["price_data"]["product_data"] == {"name": "Delivery Fee", "description": "Standard Delivery"}

    def test_retrieve_retries_connection_errors(self, stripe_gateway, monkeypatch):
        attempts = []

        def retrieve(session_id, params=None, options=None):
            attempts.append(session_id)
            if len(attempts) < 3:
                raise stripe.APIConnectionError("connection reset")
            return {"id": session_id, "payment_status": "paid", "metadata": {"cart_id": "4"}}

        monkeypatch.setattr(stripe_gateway, "client", sessions_client(retrieve=retrieve))

        session = stripe_gateway.retrieve_checkout_session("cs_1")

        assert session.is_paid
        assert session.metadata == {"cart_id": "4"}
        assert len(attempts) == 3

    def test_exhausted_retries_become_transient_error(self, stripe_gateway, monkeypatch):
        def retrieve(session_id, params=None, options=None):
            raise stripe.RateLimitError("slow down")

        monkeypatch.setattr(stripe_gateway, "client", sessions_client(retrieve=retrieve))

        with pytest.raises(PaymentProviderUnavailable) as exc_info:
            stripe_gateway.retrieve_checkout_session("cs_1")
        assert exc_info.value.retryable

    def test_unknown_session_cannot_be_verified(self, stripe_gateway, monkeypatch):
        attempts = []

        def retrieve(session_id, params=None, options=None):
            attempts.append(session_id)
            raise stripe.InvalidRequestError("No such checkout.session", "id")

        monkeypatch.setattr(stripe_gateway, "client", sessions_client(retrieve=retrieve))

        with pytest.raises(PaymentNotCompleted) as exc_info:
            stripe_gateway.retrieve_checkout_session("cs_missing")
        assert exc_info.value.kind is ErrorKind.PAYMENT_NOT_COMPLETED
        assert not exc_info.value.retryable
        assert exc_info.value.context == {"payment_session_id": "cs_missing"}
        assert len(attempts) == 1

    def test_client_settings_stay_on_the_instance(self, monkeypatch):
        monkeypatch.setattr(stripe, "default_http_client", None)
        monkeypatch.setattr(stripe, "max_network_retries", 2)

        first = StripeGateway(api_key="sk_test_one", webhook_secret=SECRET, timeout=5)
        second = StripeGateway(api_key="sk_test_two", webhook_secret=SECRET, timeout=5)

        assert stripe.default_http_client is None
        assert stripe.max_network_retries == 2
        assert first.client is not second.client

    def test_webhook_verification(self, stripe_gateway):
        payload = json.dumps(
            {
                "id": "evt_1",
                "object": "event",
                "type": "checkout.session.completed",
                "data": {"object": {"id": "cs_1", "object": "checkout.session"}},
            }
        ).encode()

        event = stripe_gateway.construct_webhook_event(payload, stripe_signature(payload))

        assert event.type == "checkout.session.completed"
        assert event.data["id"] == "cs_1"

    def test_webhook_with_wrong_secret(self, stripe_gateway):
        payload = b'{"id": "evt_1", "object": "event", "type": "ping", "data": {"object": {}}}'

        with pytest.raises(WebhookSignatureInvalid):
            stripe_gateway.construct_webhook_event(payload, stripe_signature(payload, secret="whsec_other"))
