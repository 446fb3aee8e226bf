# storefront/domain/orders.py
from enum import Enum

from storefront.domain.errors import InvalidStatusTransition, OrderNotCancellable


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_NEXT = {
    OrderStatus.PENDING: OrderStatus.PAID,
    OrderStatus.PAID: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PAID})


def can_cancel(status: str) -> bool:
    return OrderStatus(status) in CANCELLABLE


def ensure_cancellable(status: str) -> None:
    if not can_cancel(status):
        raise OrderNotCancellable(f"Order in status '{status}' cannot be cancelled", status=status)


def ensure_transition(current: str, target: str) -> None:
    """Forward-only, one step at a time; cancel goes through ensure_cancellable."""
    try:
        current_status = OrderStatus(current)
        target_status = OrderStatus(target)
    except ValueError as exc:
        raise InvalidStatusTransition(str(exc), current=current, target=target) from exc

    if target_status == OrderStatus.CANCELLED:
        ensure_cancellable(current)
        return

    if _NEXT.get(current_status) != target_status:
        raise InvalidStatusTransition(
            f"Cannot move order from '{current_status.value}' to '{target_status.value}'",
            current=current_status.value,
            target=target_status.value,
        )
