# storefront/services/notification_service.py
from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    """

    def send_order_confirmation(self, order_id: int, user_id: int | None, total_amount: str) -> bool:
        """
        Enqueue the confirmation. A broker outage must not undo a committed
        order, so failure to enqueue is logged and reported as False.
        """
        try:
            send_order_confirmation_task.delay(order_id, user_id, total_amount)
        except OperationalError:
            logger.warning("order_confirmation.enqueue_failed", order_id=order_id)
            return False
        return True


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: int, user_id: int | None, total_amount: str):
    # the mail/SMS client plugs in here; for now the confirmation is logged
    logger.info(
        "order_confirmation.sent",
        order_id=order_id,
        user_id=user_id,
        total_amount=total_amount,
    )
    return {"order_id": order_id, "user_id": user_id, "status": "sent"}
