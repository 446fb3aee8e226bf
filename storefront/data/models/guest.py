from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from storefront.data.database import Base


class GuestModel(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True)
    session_token = Column(String(255), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
