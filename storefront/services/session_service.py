# storefront/services/session_service.py
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import GuestSessionUnavailable
from storefront.domain.identity import GuestOwner, ResolvedIdentity, UserOwner
from storefront.repos.guest_repo import GuestRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.settings import GUEST_SESSION_TTL_SECONDS


class SessionService:
    """
    Decides who is calling: an authenticated user, a known guest, or a
    brand new guest (minted on demand).
    """

    def __init__(self, db: Session, guest_ttl_seconds: int = GUEST_SESSION_TTL_SECONDS, clock=None):
        self.guests = GuestRepo(db)
        self.users = UserRepo(db)
        self.guest_ttl = timedelta(seconds=guest_ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve_identity(
        self,
        session_token: str | None,
        guest_token: str | None,
        create_guest: bool = True,
    ) -> ResolvedIdentity:
        now = self._clock()

        if session_token:
            auth_session = self.users.get_live_session(session_token, now)
            if auth_session:
                return ResolvedIdentity(
                    owner=UserOwner(auth_session.user_id),
                    guest_token=guest_token,
                )

        if guest_token:
            guest = self.lookup_guest(guest_token)
            if guest:
                return ResolvedIdentity(owner=GuestOwner(guest.id), guest_token=guest_token)

        if not create_guest:
            return ResolvedIdentity(owner=None)

        guest_id, token = self.mint_guest()
        return ResolvedIdentity(
            owner=GuestOwner(guest_id),
            issued_guest_token=token,
            guest_token=token,
        )

    def lookup_guest(self, token: str):
        """Return the live guest for ``token``; an expired one is deleted on the way."""
        now = self._clock()
        guest = self.guests.get_live_by_token(token, now)
        if guest:
            return guest

        if self.guests.purge_expired(now, token=token):
            self.guests.commit()
        return None

    def mint_guest(self) -> tuple[int, str]:
        token = secrets.token_urlsafe(32)
        expires_at = self._clock() + self.guest_ttl
        try:
            guest = self.guests.create(token, expires_at)
            self.guests.commit()
        except SQLAlchemyError as exc:
            self.guests.rollback()
            raise GuestSessionUnavailable() from exc
        return guest.id, token
