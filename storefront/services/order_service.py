# storefront/services/order_service.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderItemModel, OrderModel
from storefront.domain.errors import (
    CartMissingOrEmpty,
    NotAuthorized,
    OrderNotFound,
    PaymentNotCompleted,
)
from storefront.domain.identity import Owner, UserOwner
from storefront.domain.orders import OrderStatus, ensure_cancellable, ensure_transition
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import line_unit_price
from storefront.services.payments.port import PaymentGateway
from storefront.utils.settings import DELIVERY_FEE

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class OrderCommit:
    order_id: int
    created: bool  # False: the order already existed for this payment session


def _parse_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def order_total(unit_prices_and_quantities, delivery_fee: Decimal) -> Decimal:
    subtotal = sum(
        (Decimal(price) * quantity for price, quantity in unit_prices_and_quantities),
        Decimal("0.00"),
    )
    return (subtotal + delivery_fee).quantize(CENTS)


class OrderService:
    """
    Orders domain: turns a paid payment session into exactly one order,
    plus reads, cancellation and fulfilment status changes.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        notifier=None,
        delivery_fee: Decimal = DELIVERY_FEE,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.gateway = gateway
        self.notifier = notifier
        self.delivery_fee = delivery_fee

    def create_order(self, payment_session_id: str, user_id: int | None = None) -> OrderCommit:
        """
        Idempotent on ``payment_session_id``:

        1. an existing order for the session is returned as is
        2. the provider must report the session as paid
        3. the cart named in the session metadata must have lines
        4. total = sum(effective unit price * qty) + delivery fee
        5. order + item snapshots are inserted, 6. cart lines deleted

        Steps 2-6 share one transaction. Losing the insert race to a
        concurrent call is answered with the winner's order.
        """
        existing = self.repo.get_by_payment_session(payment_session_id)
        if existing:
            return OrderCommit(order_id=existing.id, created=False)

        try:
            session = self.gateway.retrieve_checkout_session(payment_session_id)
            if not session.is_paid:
                raise PaymentNotCompleted(
                    f"Payment session is not paid (status: {session.payment_status})",
                    payment_session_id=payment_session_id,
                    payment_status=session.payment_status,
                )

            cart_id = _parse_int(session.metadata.get("cart_id"))
            lines = self.carts.get_cart_items_with_variants(cart_id) if cart_id else []
            if not lines:
                raise CartMissingOrEmpty(
                    payment_session_id=payment_session_id,
                    cart_id=session.metadata.get("cart_id"),
                )

            # the paid session names the buyer; user_id only fills in when it names none
            owner_id = _parse_int(session.metadata.get("user_id"))
            if owner_id is None:
                owner_id = user_id

            items = [
                OrderItemModel(
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                    price_at_purchase=line_unit_price(line),
                )
                for line in lines
            ]
            total = order_total(
                ((item.price_at_purchase, item.quantity) for item in items),
                self.delivery_fee,
            )

            order = self.repo.create_order(
                OrderModel(
                    user_id=owner_id,
                    status=OrderStatus.PAID.value,
                    total_amount=total,
                    payment_session_id=payment_session_id,
                ),
                items,
            )
            self.carts.clear_items(cart_id)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            winner = self.repo.get_by_payment_session(payment_session_id)
            if not winner:
                raise
            return OrderCommit(order_id=winner.id, created=False)
        except Exception:
            self.repo.rollback()
            raise

        if self.notifier is not None:
            self.notifier.send_order_confirmation(order.id, order.user_id, str(order.total_amount))

        return OrderCommit(order_id=order.id, created=True)

    def get_order(self, payment_session_id: str) -> Dict[str, Any]:
        order = self.repo.get_by_payment_session(payment_session_id)
        if not order:
            raise OrderNotFound(payment_session_id=payment_session_id)

        # line details are for display only; a failed fetch degrades to no lines
        try:
            with self.db.begin_nested():
                items = [_item_dict(i) for i in self.repo.get_order_items_with_variants(order.id)]
        except SQLAlchemyError:
            items = []

        return _order_dict(order, items)

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [
            _order_dict(order, [_item_dict(i) for i in order.items])
            for order in self.repo.list_for_user(user_id)
        ]

    def cancel_order(self, order_id: int, requester: Owner | None) -> Dict[str, Any]:
        try:
            order = self.repo.get_order(order_id)
            if not order:
                raise OrderNotFound(order_id=order_id)

            if not isinstance(requester, UserOwner) or order.user_id != requester.user_id:
                raise NotAuthorized("Only the customer who placed the order can cancel it", order_id=order_id)

            ensure_cancellable(order.status)
            self.repo.update_order_status(order, OrderStatus.CANCELLED.value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return _order_dict(order, [])

    def advance_status(self, order_id: int, status: str) -> Dict[str, Any]:
        """Fulfilment updates: paid -> shipped -> delivered, one step at a time."""
        try:
            order = self.repo.get_order(order_id)
            if not order:
                raise OrderNotFound(order_id=order_id)

            ensure_transition(order.status, status)
            self.repo.update_order_status(order, OrderStatus(status).value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return _order_dict(order, [])


def _item_dict(item: OrderItemModel) -> Dict[str, Any]:
    variant = item.variant
    product = variant.product if variant else None
    return {
        "id": item.id,
        "variant_id": item.variant_id,
        "quantity": item.quantity,
        "price_at_purchase": item.price_at_purchase,
        "product_name": product.name if product else None,
        "size": variant.size if variant else None,
        "color": variant.color if variant else None,
    }


def _order_dict(order: OrderModel, items: list) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "payment_session_id": order.payment_session_id,
        "created_at": order.created_at,
        "items": items,
    }
