from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    gender = Column(String(20), nullable=True)  # men, women, kids, unisex
    category = Column(String(50), nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariantModel.id",
    )


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    size = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    in_stock = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="variants")

    @property
    def effective_price(self):
        return self.sale_price if self.sale_price is not None else self.price
