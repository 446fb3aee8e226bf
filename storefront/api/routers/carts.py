# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.dependencies import current_identity, get_db, optional_identity
from storefront.domain.errors import CartLineNotFound, GuestSessionUnavailable
from storefront.domain.identity import ResolvedIdentity
from storefront.domain.schemas import CartOut, ItemIn, QuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    identity: ResolvedIdentity = Depends(optional_identity),
    db: Session = Depends(get_db),
):
    return get_service(db).get_cart(identity.owner)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    identity: ResolvedIdentity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    if identity.owner is None:
        raise GuestSessionUnavailable()

    svc = get_service(db)
    cart_id = svc.get_or_create_cart(identity.owner)
    svc.add_item(cart_id, payload.variant_id, payload.quantity)
    return svc.get_cart_by_id(cart_id)


@router.patch("/items/{line_id}", response_model=CartOut)
def update_item(
    line_id: int,
    payload: QuantityIn,
    identity: ResolvedIdentity = Depends(optional_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.cart_id_for(identity.owner)
    if cart_id is None:
        raise CartLineNotFound(line_id=line_id)

    svc.update_quantity(line_id, payload.quantity, cart_id=cart_id)
    return svc.get_cart_by_id(cart_id)


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(
    line_id: int,
    identity: ResolvedIdentity = Depends(optional_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.cart_id_for(identity.owner)
    if cart_id is None:
        raise CartLineNotFound(line_id=line_id)

    svc.remove_line(line_id, cart_id=cart_id)
    return svc.get_cart_by_id(cart_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    identity: ResolvedIdentity = Depends(optional_identity),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.cart_id_for(identity.owner)
    if cart_id is not None:
        svc.clear_cart(cart_id)
    return svc.get_cart(identity.owner)
