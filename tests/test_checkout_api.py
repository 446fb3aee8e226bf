"""Checkout, return-from-payment page, webhook and order history over HTTP."""

import json

import pytest

from storefront.domain.errors import PaymentProviderUnavailable
from storefront.services.payments import CheckoutSession

SIGN_UP = {"email": "buyer@example.com", "password": "swoosh-1234", "name": "Buyer"}


@pytest.fixture()
def ids(variants):
    return [v.id for v in variants]


def checkout(client, lines):
    for variant_id, quantity in lines:
        client.post("/cart/items", json={"variant_id": variant_id, "quantity": quantity})
    response = client.post("/checkout")
    assert response.status_code == 201
    return response.json()


def completed_event(session_id, metadata=None, event_id="evt_1"):
    return json.dumps(
        {
            "id": event_id,
            "type": "checkout.session.completed",
            "data": {"object": {"id": session_id, "metadata": metadata or {}}},
        }
    ).encode()


def post_webhook(client, gateway, body, signature=None):
    return client.post(
        "/webhooks/stripe",
        content=body,
        headers={"stripe-signature": signature or gateway.sign(body), "content-type": "application/json"},
    )


class TestCreateCheckout:
    def test_builds_line_items_with_delivery_fee(self, client, gateway, ids):
        body = checkout(client, [(ids[0], 2), (ids[1], 1)])

        assert body["total_amount"] == "212.00"
        assert body["url"].endswith(body["session_id"])
        items = gateway.line_items[body["session_id"]]
        assert [(i.name, i.unit_amount, i.quantity) for i in items] == [
            ("Nike Air Force 1", 8000, 2),
            ("Nike Pegasus 41", 5000, 1),
            ("Delivery Fee", 200, 1),
        ]
        metadata = gateway.sessions[body["session_id"]].metadata
        assert metadata["total_amount"] == "212.00"
        assert metadata["user_id"] == ""

    def test_signed_in_checkout_carries_user(self, client, gateway, ids):
        user_id = client.post("/auth/sign-up", json=SIGN_UP).json()["user"]["id"]

        body = checkout(client, [(ids[2], 1)])

        session = gateway.sessions[body["session_id"]]
        assert session.metadata["user_id"] == str(user_id)
        assert session.customer_email == SIGN_UP["email"]

    def test_empty_cart(self, client):
        response = client.post("/checkout")

        assert response.status_code == 409
        assert response.json()["error"] == "cart_missing_or_empty"

    def test_provider_outage_is_retryable(self, client, gateway, ids):
        client.post("/cart/items", json={"variant_id": ids[0]})
        gateway.fail_with(PaymentProviderUnavailable())

        response = client.post("/checkout")

        assert response.status_code == 503
        assert response.json()["retryable"] is True


class TestCheckoutSuccess:
    def test_paid_session_creates_order_once(self, client, gateway, notifier, ids):
        session_id = checkout(client, [(ids[0], 2), (ids[1], 1)])["session_id"]
        gateway.mark_paid(session_id)

        first = client.get("/checkout/success", params={"session_id": session_id})
        again = client.get("/checkout/success", params={"session_id": session_id})

        assert first.status_code == 200
        assert first.json()["outcome"] == "created"
        assert first.json()["order"]["total_amount"] == "212.00"
        assert first.json()["order"]["status"] == "paid"
        assert again.json()["outcome"] == "already_processed"
        assert again.json()["order"]["id"] == first.json()["order"]["id"]
        assert len(notifier.sent) == 1
        assert client.get("/cart").json()["items"] == []

    def test_unpaid_session(self, client, gateway, ids):
        session_id = checkout(client, [(ids[0], 1)])["session_id"]

        response = client.get("/checkout/success", params={"session_id": session_id})

        assert response.status_code == 402
        assert response.json()["error"] == "payment_not_completed"
        assert len(client.get("/cart").json()["items"]) == 1

    def test_session_id_is_required(self, client):
        assert client.get("/checkout/success").status_code == 422

    def test_order_stays_with_the_buyer_whoever_opens_the_page(self, client, app_client_factory, gateway, ids):
        client.post("/auth/sign-up", json=SIGN_UP)
        session_id = checkout(client, [(ids[0], 1)])["session_id"]
        gateway.mark_paid(session_id)

        with app_client_factory() as stranger:
            stranger.post("/auth/sign-up", json={**SIGN_UP, "email": "someone@example.com"})
            page = stranger.get("/checkout/success", params={"session_id": session_id})
            stranger_orders = stranger.get("/orders").json()

        assert page.status_code == 200
        assert stranger_orders == []
        assert [o["id"] for o in client.get("/orders").json()] == [page.json()["order"]["id"]]
        assert client.post(f"/orders/{page.json()['order']['id']}/cancel").status_code == 200


class TestStripeWebhook:
    def test_missing_signature(self, client):
        response = client.post("/webhooks/stripe", content=b"{}")

        assert response.status_code == 400

    def test_bad_signature(self, client, gateway):
        body = completed_event("cs_whatever")

        assert post_webhook(client, gateway, body, signature="deadbeef").status_code == 400

    def test_completed_session_creates_order(self, client, gateway, ids):
        session_id = checkout(client, [(ids[0], 2), (ids[1], 1)])["session_id"]
        gateway.mark_paid(session_id)

        response = post_webhook(client, gateway, completed_event(session_id))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        order = client.get(f"/orders/{session_id}").json()
        assert order["total_amount"] == "212.00"
        assert len(order["items"]) == 2

    def test_webhook_then_page_is_already_processed(self, client, gateway, ids):
        session_id = checkout(client, [(ids[0], 1)])["session_id"]
        gateway.mark_paid(session_id)
        post_webhook(client, gateway, completed_event(session_id))

        page = client.get("/checkout/success", params={"session_id": session_id})

        assert page.json()["outcome"] == "already_processed"

    def test_redelivery_is_harmless(self, client, gateway, notifier, ids):
        session_id = checkout(client, [(ids[0], 1)])["session_id"]
        gateway.mark_paid(session_id)

        for _ in range(3):
            assert post_webhook(client, gateway, completed_event(session_id)).status_code == 200

        assert len(notifier.sent) == 1

    def test_precondition_failure_is_acknowledged(self, client, gateway):
        gateway.add_session(CheckoutSession(id="cs_empty", payment_status="paid", metadata={"cart_id": "777"}))

        response = post_webhook(client, gateway, completed_event("cs_empty"))

        assert response.status_code == 200
        assert response.json() == {"received": True, "error": "cart_missing_or_empty"}

    def test_transient_failure_asks_for_redelivery(self, client, gateway):
        gateway.fail_with(PaymentProviderUnavailable())

        response = post_webhook(client, gateway, completed_event("cs_later"))

        assert response.status_code == 503

    @pytest.mark.parametrize("event_type", ["payment_intent.payment_failed", "payment_intent.succeeded", "charge.refunded"])
    def test_other_events_are_acknowledged(self, client, gateway, event_type):
        body = json.dumps({"id": "evt_2", "type": event_type, "data": {"object": {"id": "pi_1", "amount": 21200}}}).encode()

        response = post_webhook(client, gateway, body)

        assert response.status_code == 200
        assert response.json() == {"received": True}


class TestOrdersAPI:
    def _place_order(self, client, gateway, ids):
        client.post("/auth/sign-up", json=SIGN_UP)
        session_id = checkout(client, [(ids[0], 1)])["session_id"]
        gateway.mark_paid(session_id)
        return client.get("/checkout/success", params={"session_id": session_id}).json()["order"]

    def test_history_requires_sign_in(self, client):
        assert client.get("/orders").status_code == 403

    def test_history_lists_own_orders(self, client, gateway, ids):
        order = self._place_order(client, gateway, ids)

        orders = client.get("/orders").json()

        assert [o["id"] for o in orders] == [order["id"]]
        assert orders[0]["items"][0]["price_at_purchase"] == "80.00"

    def test_unknown_order(self, client):
        assert client.get("/orders/cs_nope").status_code == 404

    def test_cancel_paid_order_once(self, client, gateway, ids):
        order = self._place_order(client, gateway, ids)

        first = client.post(f"/orders/{order['id']}/cancel")
        second = client.post(f"/orders/{order['id']}/cancel")

        assert first.status_code == 200
        assert first.json()["status"] == "cancelled"
        assert second.status_code == 409
        assert second.json()["error"] == "order_not_cancellable"

    def test_cancel_requires_the_owner(self, client, app_client_factory, gateway, ids):
        order = self._place_order(client, gateway, ids)

        with app_client_factory() as stranger:
            response = stranger.post(f"/orders/{order['id']}/cancel")

        assert response.status_code == 403
