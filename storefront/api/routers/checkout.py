# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_db, get_gateway, get_notifier, optional_identity
from storefront.domain.errors import CartMissingOrEmpty
from storefront.domain.identity import ResolvedIdentity
from storefront.domain.schemas import CheckoutOut, CheckoutSuccessOut
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService
from storefront.services.payments.port import PaymentGateway
from storefront.services.user_service import UserService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutOut, status_code=201)
def create_checkout(
    identity: ResolvedIdentity = Depends(optional_identity),
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    if identity.owner is None:
        raise CartMissingOrEmpty("Cart is empty")

    email = None
    if identity.is_authenticated:
        user = UserService(db).get_user(identity.owner.user_id)
        email = user.email if user else None

    result = CheckoutService(db, gateway).create_checkout_session(identity.owner, customer_email=email)
    logger.info("checkout.session_created", session_id=result["session_id"])
    return result


@router.get("/success", response_model=CheckoutSuccessOut)
def checkout_success(
    session_id: str = Query(..., min_length=1, max_length=255),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Return-from-payment page; the webhook may already have created the order.

    The order belongs to whoever the paid session names, not to the viewer.
    """
    svc = OrderService(db, gateway, notifier=notifier)

    commit = svc.create_order(session_id)
    order = svc.get_order(session_id)

    if commit.created:
        logger.info("order.created", order_id=commit.order_id, source="page")
        message = "Thank you! Your order has been placed."
    else:
        message = "This order has already been processed."

    return {
        "outcome": "created" if commit.created else "already_processed",
        "message": message,
        "order": order,
    }
