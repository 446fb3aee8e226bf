# storefront/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # exactly one owner column is set; see storefront.domain.identity.Owner
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, unique=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (guest_id IS NULL)",
            name="ck_carts_single_owner",
        ),
    )
