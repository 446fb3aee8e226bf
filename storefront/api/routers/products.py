# storefront/api/routers/products.py
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_db
from storefront.domain.schemas import ProductOut, ProductPage
from storefront.services.catalog_service import PRODUCTS_PER_PAGE, CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductPage)
def list_products(
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    gender: str | None = Query(None, max_length=20),
    search: str | None = Query(None, max_length=100),
    sort: Literal["newest", "price_asc", "price_desc"] = "newest",
    page: int = Query(1, ge=1),
    per_page: int = Query(PRODUCTS_PER_PAGE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return CatalogService(db).list_products(
        min_price=min_price,
        max_price=max_price,
        gender=gender,
        search=search,
        sort=sort,
        page=page,
        per_page=per_page,
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)
