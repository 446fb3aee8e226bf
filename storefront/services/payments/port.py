"""Payment gateway port.

Order and checkout services depend only on this interface, so the Stripe
adapter can be swapped for the fake one in development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


PAID = "paid"


@dataclass(frozen=True)
class LineItem:
    name: str
    unit_amount: int  # minor units (cents)
    quantity: int
    description: str | None = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    payment_status: str
    url: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    customer_email: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAID


@dataclass(frozen=True)
class WebhookEvent:
    id: str
    type: str
    data: dict[str, Any]


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        line_items: list[LineItem],
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        """Start a hosted checkout; the returned session carries the redirect URL."""
        ...

    @abstractmethod
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Authoritative session state, including payment status and metadata."""
        ...

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify the signature and parse the event. Raises WebhookSignatureInvalid."""
        ...
