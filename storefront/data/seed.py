# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.database import init_db, make_engine, make_session_factory
from storefront.data.models import ProductModel, ProductVariantModel
from storefront.utils.logging import get_logger
from storefront.utils.settings import DATABASE_URL

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "Nike Air Max 90",
        "description": "Waffle outsole, stitched overlays and the visible Air unit that started it all.",
        "gender": "men",
        "category": "shoes",
        "price": "130.00",
        "sale_price": None,
        "colors": ["White", "Black"],
        "sizes": ["8", "9", "10", "11"],
    },
    {
        "name": "Nike Air Force 1 '07",
        "description": "The radiance lives on with crisp leather and bold details.",
        "gender": "women",
        "category": "shoes",
        "price": "115.00",
        "sale_price": "92.00",
        "colors": ["White"],
        "sizes": ["6", "7", "8", "9"],
    },
    {
        "name": "Nike Pegasus 41",
        "description": "Responsive cushioning for everyday road running.",
        "gender": "unisex",
        "category": "running",
        "price": "140.00",
        "sale_price": None,
        "colors": ["Blue", "Grey"],
        "sizes": ["8", "9", "10"],
    },
    {
        "name": "Nike Dunk Low",
        "description": "Created for the hardwood but taken to the streets.",
        "gender": "kids",
        "category": "shoes",
        "price": "85.00",
        "sale_price": "68.00",
        "colors": ["Green", "Red"],
        "sizes": ["4", "5", "6"],
    },
]


def seed(db: Session) -> int:
    # only seed an empty catalog
    if db.execute(select(ProductModel.id).limit(1)).first():
        return 0

    for index, data in enumerate(PRODUCTS, start=1):
        product = ProductModel(
            name=data["name"],
            description=data["description"],
            gender=data["gender"],
            category=data["category"],
        )
        for color in data["colors"]:
            for size in data["sizes"]:
                product.variants.append(
                    ProductVariantModel(
                        sku=f"NK{index:03d}-{color[:3].upper()}-{size}",
                        size=size,
                        color=color,
                        price=Decimal(data["price"]),
                        sale_price=Decimal(data["sale_price"]) if data["sale_price"] else None,
                        in_stock=25,
                    )
                )
        db.add(product)

    db.commit()
    return len(PRODUCTS)


if __name__ == "__main__":
    engine = make_engine(DATABASE_URL)
    init_db(engine)
    db = make_session_factory(engine)()
    try:
        created = seed(db)
        logger.info("seed.finished", products=created)
    finally:
        db.close()
