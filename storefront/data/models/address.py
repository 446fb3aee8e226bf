# storefront/data/models/address.py
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base

ADDRESS_TYPES = ("billing", "shipping")


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    line1 = Column(String(255), nullable=False)
    line2 = Column(String(255), nullable=True)
    city = Column(String(120), nullable=False)
    state = Column(String(120), nullable=False)
    country = Column(String(120), nullable=False)
    postal_code = Column(String(20), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)

    user = relationship("UserModel", back_populates="addresses")

    __table_args__ = (
        CheckConstraint("type IN ('billing', 'shipping')", name="ck_addresses_type"),
        Index("ix_addresses_user_id", "user_id"),
    )
