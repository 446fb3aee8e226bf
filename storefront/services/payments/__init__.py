from storefront.services.payments.port import (
    PAID,
    CheckoutSession,
    LineItem,
    PaymentGateway,
    WebhookEvent,
)
from storefront.services.payments.fake_adapter import FakeGateway
from storefront.services.payments.stripe_adapter import StripeGateway
from storefront.utils.settings import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET


def build_gateway(api_key: str | None = None, webhook_secret: str | None = None) -> PaymentGateway:
    """Stripe when a secret key is configured, the in-memory fake otherwise."""
    api_key = STRIPE_SECRET_KEY if api_key is None else api_key
    webhook_secret = STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
    if api_key:
        return StripeGateway(api_key=api_key, webhook_secret=webhook_secret)
    return FakeGateway(webhook_secret=webhook_secret or "whsec_test")


__all__ = [
    "PAID",
    "CheckoutSession",
    "LineItem",
    "PaymentGateway",
    "WebhookEvent",
    "FakeGateway",
    "StripeGateway",
    "build_gateway",
]
