from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound
from storefront.repos.product_repo import ProductRepo

PRODUCTS_PER_PAGE = 12


def _variant_dict(variant) -> Dict[str, Any]:
    return {
        "id": variant.id,
        "sku": variant.sku,
        "size": variant.size,
        "color": variant.color,
        "price": variant.price,
        "sale_price": variant.sale_price,
        "effective_price": variant.effective_price,
        "in_stock": variant.in_stock,
    }


def _product_dict(product: ProductModel) -> Dict[str, Any]:
    variants = [_variant_dict(v) for v in product.variants]
    prices = [v["effective_price"] for v in variants]
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "gender": product.gender,
        "category": product.category,
        "min_price": min(prices) if prices else None,
        "max_price": max(prices) if prices else None,
        "variants": variants,
    }


class CatalogService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(
        self,
        *,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        gender: str | None = None,
        search: str | None = None,
        sort: str = "newest",
        page: int = 1,
        per_page: int = PRODUCTS_PER_PAGE,
    ) -> Dict[str, Any]:
        products, total = self.repo.list_products(
            min_price=min_price,
            max_price=max_price,
            gender=gender,
            search=search,
            sort=sort,
            offset=(page - 1) * per_page,
            limit=per_page,
        )
        return {
            "items": [_product_dict(p) for p in products],
            "total": total,
            "page": page,
            "per_page": per_page,
        }

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        return _product_dict(product)
