"""Stripe Checkout adapter."""

import json

import stripe

from storefront.domain.errors import (
    PaymentNotCompleted,
    PaymentProviderUnavailable,
    WebhookSignatureInvalid,
)
from storefront.services.payments.port import CheckoutSession, PaymentGateway, WebhookEvent
from storefront.utils.retry import payment_retry
from storefront.utils.settings import CURRENCY, STRIPE_TIMEOUT_SECONDS

# connection problems and throttling are worth another attempt; card or
# request errors are not
_TRANSIENT = (stripe.APIConnectionError, stripe.RateLimitError)

ALLOWED_SHIPPING_COUNTRIES = ["US", "CA", "GB", "AU", "DE", "FR", "IT", "ES", "NL", "BE"]


def _field(obj, name):
    try:
        return obj[name]
    except KeyError:
        return None


def _to_session(obj) -> CheckoutSession:
    metadata = _field(obj, "metadata") or {}
    return CheckoutSession(
        id=obj["id"],
        payment_status=_field(obj, "payment_status") or "unpaid",
        url=_field(obj, "url"),
        metadata={k: str(v) for k, v in metadata.items()},
        customer_email=_field(obj, "customer_email"),
    )


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: int = STRIPE_TIMEOUT_SECONDS,
        currency: str = CURRENCY,
    ):
        self.webhook_secret = webhook_secret
        self.currency = currency
        # bounded timeout on every provider call; retries are ours (tenacity)
        self.client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=0,
        )

    def create_checkout_session(self, line_items, metadata, success_url, cancel_url, customer_email=None):
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": item.name,
                            **({"description": item.description} if item.description else {}),
                            **({"images": list(item.images)} if item.images else {}),
                        },
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "shipping_address_collection": {"allowed_countries": ALLOWED_SHIPPING_COUNTRIES},
        }
        if customer_email:
            params["customer_email"] = customer_email

        return _to_session(self._call(self.client.checkout.sessions.create, params=params))

    def retrieve_checkout_session(self, session_id):
        try:
            session = self._call(self.client.checkout.sessions.retrieve, session_id)
        except stripe.InvalidRequestError as exc:
            # unknown or malformed session id
            raise PaymentNotCompleted(payment_session_id=session_id) from exc
        return _to_session(session)

    def construct_webhook_event(self, payload, signature):
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8") if isinstance(payload, bytes) else payload,
                signature,
                self.webhook_secret,
                stripe.Webhook.DEFAULT_TOLERANCE,
            )
            event = json.loads(payload)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise WebhookSignatureInvalid() from exc
        return WebhookEvent(id=event.get("id", ""), type=event["type"], data=event["data"]["object"])

    def _call(self, fn, *args, **kwargs):
        @payment_retry(*_TRANSIENT)
        def attempt():
            return fn(*args, **kwargs)

        try:
            return attempt()
        except _TRANSIENT as exc:
            raise PaymentProviderUnavailable() from exc
