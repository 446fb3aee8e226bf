# storefront/api/dependencies.py
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from storefront.domain.errors import GuestSessionUnavailable
from storefront.domain.identity import ResolvedIdentity
from storefront.services.payments.port import PaymentGateway
from storefront.services.session_service import SessionService
from storefront.utils.logging import get_logger
from storefront.utils.settings import (
    AUTH_COOKIE_NAME,
    AUTH_SESSION_TTL_SECONDS,
    COOKIE_SECURE,
    GUEST_COOKIE_NAME,
    GUEST_SESSION_TTL_SECONDS,
)

logger = get_logger(__name__)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def get_notifier(request: Request):
    return request.app.state.notifier


def set_guest_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        GUEST_COOKIE_NAME,
        token,
        max_age=GUEST_SESSION_TTL_SECONDS,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
        path="/",
    )


def clear_guest_cookie(response: Response) -> None:
    response.delete_cookie(GUEST_COOKIE_NAME, path="/")


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=AUTH_SESSION_TTL_SECONDS,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")


def _resolve(request: Request, response: Response, db: Session, create_guest: bool) -> ResolvedIdentity:
    try:
        identity = SessionService(db).resolve_identity(
            session_token=request.cookies.get(AUTH_COOKIE_NAME),
            guest_token=request.cookies.get(GUEST_COOKIE_NAME),
            create_guest=create_guest,
        )
    except GuestSessionUnavailable:
        # anonymous without a cart for this request; the client may retry
        logger.warning("guest_session.mint_failed", exc_info=True)
        return ResolvedIdentity(owner=None)

    if identity.issued_guest_token:
        set_guest_cookie(response, identity.issued_guest_token)
    return identity


def current_identity(request: Request, response: Response, db: Session = Depends(get_db)) -> ResolvedIdentity:
    """Caller identity, minting a guest when there is none (cart writes)."""
    return _resolve(request, response, db, create_guest=True)


def optional_identity(request: Request, response: Response, db: Session = Depends(get_db)) -> ResolvedIdentity:
    """Caller identity without side effects; owner is None for new visitors."""
    return _resolve(request, response, db, create_guest=False)


async def raw_body(request: Request) -> bytes:
    return await request.body()
