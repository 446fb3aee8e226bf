import pytest

from storefront.domain.errors import ErrorKind, InvalidStatusTransition, OrderNotCancellable
from storefront.domain.orders import OrderStatus, can_cancel, ensure_cancellable, ensure_transition


class TestCancellation:
    @pytest.mark.parametrize("status", ["pending", "paid"])
    def test_early_statuses_can_be_cancelled(self, status):
        assert can_cancel(status)
        ensure_cancellable(status)

    @pytest.mark.parametrize("status", ["shipped", "delivered", "cancelled"])
    def test_late_statuses_cannot(self, status):
        assert not can_cancel(status)
        with pytest.raises(OrderNotCancellable) as exc_info:
            ensure_cancellable(status)
        assert exc_info.value.kind == ErrorKind.ORDER_NOT_CANCELLABLE
        assert not exc_info.value.retryable


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [("pending", "paid"), ("paid", "shipped"), ("shipped", "delivered"), ("paid", "cancelled")],
    )
    def test_allowed(self, current, target):
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("paid", "pending"),
            ("paid", "delivered"),
            ("delivered", "shipped"),
            ("cancelled", "paid"),
            ("paid", "paid"),
            ("paid", "lost"),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidStatusTransition):
            ensure_transition(current, target)

    def test_cancel_after_shipping_is_not_a_transition_error(self):
        with pytest.raises(OrderNotCancellable):
            ensure_transition(OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value)
