"""In-process payment gateway for development and tests.

Sessions live in memory; ``mark_paid`` plays the part of the customer
completing payment on the hosted page.
"""

import hashlib
import hmac
import json
from uuid import uuid4

from storefront.domain.errors import WebhookSignatureInvalid
from storefront.services.payments.port import (
    PAID,
    CheckoutSession,
    LineItem,
    PaymentGateway,
    WebhookEvent,
)


class FakeGateway(PaymentGateway):
    def __init__(self, webhook_secret: str = "whsec_test", base_url: str = "https://checkout.fake"):
        self.webhook_secret = webhook_secret
        self.base_url = base_url.rstrip("/")
        self.sessions: dict[str, CheckoutSession] = {}
        self.line_items: dict[str, list[LineItem]] = {}
        self.calls: list[dict] = []
        self.failure: Exception | None = None

    def fail_with(self, exc: Exception | None) -> None:
        """Make every subsequent call raise ``exc`` (None to stop)."""
        self.failure = exc

    def _maybe_fail(self):
        if self.failure is not None:
            raise self.failure

    def create_checkout_session(self, line_items, metadata, success_url, cancel_url, customer_email=None):
        self.calls.append({"method": "create_checkout_session", "metadata": dict(metadata)})
        self._maybe_fail()

        session_id = f"cs_test_{uuid4().hex}"
        session = CheckoutSession(
            id=session_id,
            payment_status="unpaid",
            url=f"{self.base_url}/pay/{session_id}",
            metadata={k: str(v) for k, v in metadata.items()},
            customer_email=customer_email,
        )
        self.sessions[session_id] = session
        self.line_items[session_id] = list(line_items)
        return session

    def mark_paid(self, session_id: str) -> CheckoutSession:
        session = self.sessions[session_id]
        paid = CheckoutSession(
            id=session.id,
            payment_status=PAID,
            url=session.url,
            metadata=session.metadata,
            customer_email=session.customer_email,
        )
        self.sessions[session_id] = paid
        return paid

    def add_session(self, session: CheckoutSession) -> None:
        self.sessions[session.id] = session

    def retrieve_checkout_session(self, session_id):
        self.calls.append({"method": "retrieve_checkout_session", "session_id": session_id})
        self._maybe_fail()
        try:
            return self.sessions[session_id]
        except KeyError:
            return CheckoutSession(id=session_id, payment_status="unpaid")

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def construct_webhook_event(self, payload, signature):
        if not signature or not hmac.compare_digest(self.sign(payload), signature):
            raise WebhookSignatureInvalid()
        body = json.loads(payload)
        return WebhookEvent(id=body.get("id", ""), type=body["type"], data=body["data"]["object"])
