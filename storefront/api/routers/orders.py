# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_db, get_gateway, optional_identity
from storefront.domain.errors import NotAuthorized
from storefront.domain.identity import ResolvedIdentity
from storefront.domain.schemas import OrderOut
from storefront.services.order_service import OrderService
from storefront.services.payments.port import PaymentGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, gateway: PaymentGateway):
    return OrderService(db, gateway)


@router.get("", response_model=List[OrderOut])
def list_orders(
    identity: ResolvedIdentity = Depends(optional_identity),
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    """Order history for the signed-in customer, newest first."""
    if not identity.is_authenticated:
        raise NotAuthorized("Not authenticated")
    return get_service(db, gateway).list_orders(identity.owner.user_id)


@router.get("/{payment_session_id}", response_model=OrderOut)
def get_order(
    payment_session_id: str,
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    return get_service(db, gateway).get_order(payment_session_id)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    identity: ResolvedIdentity = Depends(optional_identity),
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
):
    order = get_service(db, gateway).cancel_order(order_id, identity.owner)
    logger.info("order.cancelled", order_id=order_id)
    return order
