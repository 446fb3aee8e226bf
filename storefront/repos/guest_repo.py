# storefront/repos/guest_repo.py
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.guest import GuestModel


class GuestRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_live_by_token(self, token: str, now: datetime) -> GuestModel | None:
        return self.db.execute(
            select(GuestModel).where(
                GuestModel.session_token == token,
                GuestModel.expires_at > now,
            )
        ).scalar_one_or_none()

    def create(self, token: str, expires_at: datetime) -> GuestModel:
        guest = GuestModel(session_token=token, expires_at=expires_at)
        self.db.add(guest)
        self.db.flush()
        return guest

    def delete(self, guest_id: int) -> int:
        self.db.execute(delete(CartModel).where(CartModel.guest_id == guest_id))
        result = self.db.execute(delete(GuestModel).where(GuestModel.id == guest_id))
        return result.rowcount

    def purge_expired(self, now: datetime, token: str | None = None) -> int:
        """Delete expired guests (optionally only the one holding ``token``) and their carts."""
        expired = select(GuestModel.id).where(GuestModel.expires_at <= now)
        if token is not None:
            expired = expired.where(GuestModel.session_token == token)

        ids = list(self.db.execute(expired).scalars())
        if not ids:
            return 0

        self.db.execute(delete(CartModel).where(CartModel.guest_id.in_(ids)))
        result = self.db.execute(delete(GuestModel).where(GuestModel.id.in_(ids)))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
