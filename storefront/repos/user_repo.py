from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.user import AuthSessionModel, UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.email == email)
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.flush()
        return user

    def create_session(self, user_id: int, token: str, expires_at: datetime) -> AuthSessionModel:
        session = AuthSessionModel(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(session)
        self.db.flush()
        return session

    def get_live_session(self, token: str, now: datetime) -> AuthSessionModel | None:
        return self.db.execute(
            select(AuthSessionModel).where(
                AuthSessionModel.token == token,
                AuthSessionModel.expires_at > now,
            )
        ).scalar_one_or_none()

    def delete_session(self, token: str) -> int:
        result = self.db.execute(delete(AuthSessionModel).where(AuthSessionModel.token == token))
        return result.rowcount

    def purge_expired_sessions(self, now: datetime) -> int:
        result = self.db.execute(delete(AuthSessionModel).where(AuthSessionModel.expires_at <= now))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
