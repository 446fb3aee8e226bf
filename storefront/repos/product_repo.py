from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel, ProductVariantModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.is_published.is_(True))
            .options(selectinload(ProductModel.variants))
        ).scalar_one_or_none()

    def list_products(
        self,
        *,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        gender: str | None = None,
        search: str | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 12,
    ) -> tuple[list[ProductModel], int]:
        effective = func.coalesce(ProductVariantModel.sale_price, ProductVariantModel.price)

        # one row per product with its cheapest effective price
        prices = (
            select(
                ProductVariantModel.product_id.label("product_id"),
                func.min(effective).label("min_price"),
            )
            .group_by(ProductVariantModel.product_id)
            .subquery()
        )

        query = (
            select(ProductModel, prices.c.min_price)
            .join(prices, prices.c.product_id == ProductModel.id)
            .where(ProductModel.is_published.is_(True))
        )

        if gender:
            query = query.where(func.lower(ProductModel.gender) == gender.lower())
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(ProductModel.name).like(pattern),
                    func.lower(ProductModel.description).like(pattern),
                )
            )
        if min_price is not None:
            query = query.where(prices.c.min_price >= min_price)
        if max_price is not None:
            query = query.where(prices.c.min_price <= max_price)

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()

        if sort == "price_asc":
            query = query.order_by(prices.c.min_price.asc(), ProductModel.id)
        elif sort == "price_desc":
            query = query.order_by(prices.c.min_price.desc(), ProductModel.id)
        else:
            query = query.order_by(ProductModel.created_at.desc(), ProductModel.id.desc())

        query = query.options(selectinload(ProductModel.variants)).offset(offset).limit(limit)
        rows = self.db.execute(query).all()
        return [product for product, _ in rows], total
