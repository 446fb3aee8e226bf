# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.errors import register_error_handlers
from storefront.api.routers import auth, carts, checkout, health, orders, products, profile, webhooks


def register_routes(app: FastAPI) -> None:
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(profile.router)
    app.include_router(webhooks.router)
    register_error_handlers(app)
