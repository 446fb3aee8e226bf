# storefront/api/routers/webhooks.py
from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_db, get_gateway, get_notifier, raw_body
from storefront.domain.errors import StorefrontError, WebhookSignatureInvalid
from storefront.services.order_service import OrderService
from storefront.services.payments.port import PaymentGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
def stripe_webhook(
    body: bytes = Depends(raw_body),
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing signature")

    try:
        event = gateway.construct_webhook_event(body, stripe_signature)
    except WebhookSignatureInvalid:
        logger.warning("webhook.signature_invalid")
        raise HTTPException(status_code=400, detail="Invalid signature")

    log = logger.bind(event_id=event.id, event_type=event.type)

    if event.type == "checkout.session.completed":
        session_id = event.data["id"]

        try:
            # the owner comes from the session the provider reports, not the event body
            commit = OrderService(db, gateway, notifier=notifier).create_order(session_id)
        except StorefrontError as exc:
            if exc.retryable:
                # non-2xx: the provider redelivers later
                raise
            # redelivery cannot fix a precondition failure; acknowledge it
            log.error("webhook.order_failed", payment_session_id=session_id, error=exc.kind.value)
            return {"received": True, "error": exc.kind.value}

        log.info(
            "webhook.order_committed",
            order_id=commit.order_id,
            payment_session_id=session_id,
            created=commit.created,
        )

    elif event.type == "payment_intent.payment_failed":
        log.warning(
            "webhook.payment_failed",
            payment_intent_id=event.data.get("id"),
            amount=event.data.get("amount"),
            currency=event.data.get("currency"),
        )

    elif event.type == "payment_intent.succeeded":
        log.info(
            "webhook.payment_succeeded",
            payment_intent_id=event.data.get("id"),
            amount=event.data.get("amount"),
        )

    else:
        log.info("webhook.unhandled")

    return {"received": True}
