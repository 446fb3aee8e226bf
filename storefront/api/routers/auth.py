# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.dependencies import (
    clear_auth_cookie,
    clear_guest_cookie,
    get_db,
    optional_identity,
    set_auth_cookie,
)
from storefront.domain.errors import NotAuthorized
from storefront.domain.identity import GuestOwner, ResolvedIdentity, UserOwner
from storefront.domain.schemas import AuthOut, SignInIn, SignUpIn, UserRead
from storefront.services.cart_service import CartService
from storefront.services.session_service import SessionService
from storefront.services.user_service import UserService
from storefront.utils.logging import get_logger
from storefront.utils.settings import AUTH_COOKIE_NAME, GUEST_COOKIE_NAME

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def merge_guest_cart(db: Session, request: Request, response: Response, user_id: int) -> int | None:
    """Hand the visitor's guest cart over to the freshly authenticated user."""
    token = request.cookies.get(GUEST_COOKIE_NAME)
    if not token:
        return None

    clear_guest_cookie(response)
    try:
        guest = SessionService(db).lookup_guest(token)
        if not guest:
            return None
        return CartService(db).merge_guest_into_user(GuestOwner(guest.id), UserOwner(user_id))
    except SQLAlchemyError:
        # signing in must not fail because the guest cart could not be moved
        logger.error("cart_merge.failed", user_id=user_id, exc_info=True)
        return None


@router.post("/sign-up", response_model=AuthOut, status_code=201)
def sign_up(payload: SignUpIn, request: Request, response: Response, db: Session = Depends(get_db)):
    user, token = UserService(db).sign_up(payload)
    set_auth_cookie(response, token)
    cart_id = merge_guest_cart(db, request, response, user.id)
    logger.info("auth.signed_up", user_id=user.id, cart_id=cart_id)
    return AuthOut(user=user, cart_id=cart_id)


@router.post("/sign-in", response_model=AuthOut)
def sign_in(payload: SignInIn, request: Request, response: Response, db: Session = Depends(get_db)):
    user, token = UserService(db).sign_in(payload)
    set_auth_cookie(response, token)
    cart_id = merge_guest_cart(db, request, response, user.id)
    logger.info("auth.signed_in", user_id=user.id, cart_id=cart_id)
    return AuthOut(user=user, cart_id=cart_id)


@router.post("/sign-out", status_code=204)
def sign_out(request: Request, response: Response, db: Session = Depends(get_db)):
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        UserService(db).sign_out(token)
    clear_auth_cookie(response)
    return None


@router.get("/me", response_model=UserRead)
def me(identity: ResolvedIdentity = Depends(optional_identity), db: Session = Depends(get_db)):
    if not identity.is_authenticated:
        raise NotAuthorized("Not authenticated")
    user = UserService(db).get_user(identity.owner.user_id)
    if not user:
        raise NotAuthorized("Not authenticated")
    return user
