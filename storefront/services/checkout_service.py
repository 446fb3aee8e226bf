# storefront/services/checkout_service.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.domain.errors import CartMissingOrEmpty, ValidationFailed
from storefront.domain.identity import Owner, UserOwner
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import line_unit_price
from storefront.services.order_service import order_total
from storefront.services.payments.port import LineItem, PaymentGateway
from storefront.utils.settings import BASE_URL, DELIVERY_FEE


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CheckoutService:
    """Builds a hosted checkout session from the caller's cart."""

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        base_url: str = BASE_URL,
        delivery_fee: Decimal = DELIVERY_FEE,
    ):
        self.carts = CartRepo(db)
        self.gateway = gateway
        self.base_url = base_url.rstrip("/")
        self.delivery_fee = delivery_fee

    def create_checkout_session(self, owner: Owner, customer_email: str | None = None) -> Dict[str, Any]:
        cart = self.carts.get_cart_for_owner(owner)
        lines = self.carts.get_cart_items_with_variants(cart.id) if cart else []
        if not lines:
            raise CartMissingOrEmpty("Cart is empty")

        line_items = []
        for index, line in enumerate(lines, start=1):
            unit_amount = to_minor_units(line_unit_price(line))
            if unit_amount <= 0:
                raise ValidationFailed(f"Item {index}: invalid price", variant_id=line.variant_id)
            line_items.append(
                LineItem(
                    name=line.variant.product.name.strip(),
                    unit_amount=unit_amount,
                    quantity=line.quantity,
                )
            )

        line_items.append(
            LineItem(
                name="Delivery Fee",
                description="Standard Delivery",
                unit_amount=to_minor_units(self.delivery_fee),
                quantity=1,
            )
        )

        total = order_total(
            ((line_unit_price(line), line.quantity) for line in lines),
            self.delivery_fee,
        )
        user_id = owner.user_id if isinstance(owner, UserOwner) else None

        session = self.gateway.create_checkout_session(
            line_items=line_items,
            metadata={
                "cart_id": str(cart.id),
                "user_id": str(user_id) if user_id is not None else "",
                "total_amount": str(total),
            },
            success_url=f"{self.base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.base_url}/cart",
            customer_email=customer_email,
        )

        return {"session_id": session.id, "url": session.url, "total_amount": total}
