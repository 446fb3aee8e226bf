import secrets
from datetime import datetime, timedelta, timezone

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import AuthenticationFailed, EmailAlreadyRegistered
from storefront.domain.schemas import SignInIn, SignUpIn, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.settings import AUTH_SESSION_TTL_SECONDS

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    try:
        return _hasher.verify(encoded, password)
    except (VerificationError, InvalidHashError):
        return False


class UserService:
    def __init__(self, db: Session, session_ttl_seconds: int = AUTH_SESSION_TTL_SECONDS):
        self.repo = UserRepo(db)
        self.session_ttl = timedelta(seconds=session_ttl_seconds)

    def sign_up(self, payload: SignUpIn) -> tuple[UserRead, str]:
        email = payload.email.strip().lower()
        if self.repo.get_by_email(email):
            raise EmailAlreadyRegistered()

        try:
            user = self.repo.create_user(
                UserModel(
                    name=payload.name.strip(),
                    email=email,
                    password_hash=hash_password(payload.password),
                )
            )
            token = self._open_session(user.id)
            self.repo.commit()
        except IntegrityError as exc:
            self.repo.rollback()
            raise EmailAlreadyRegistered() from exc
        except Exception:
            self.repo.rollback()
            raise

        return UserRead(id=user.id, name=user.name, email=user.email), token

    def sign_in(self, payload: SignInIn) -> tuple[UserRead, str]:
        user = self.repo.get_by_email(payload.email.strip().lower())
        if not user or not verify_password(payload.password, user.password_hash):
            raise AuthenticationFailed()

        try:
            token = self._open_session(user.id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return UserRead(id=user.id, name=user.name, email=user.email), token

    def sign_out(self, token: str) -> None:
        self.repo.delete_session(token)
        self.repo.commit()

    def get_user(self, user_id: int) -> UserRead | None:
        user = self.repo.get_user(user_id)
        if not user:
            return None
        return UserRead(id=user.id, name=user.name, email=user.email)

    def _open_session(self, user_id: int) -> str:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self.session_ttl
        self.repo.create_session(user_id, token, expires_at)
        return token
