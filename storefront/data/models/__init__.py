# import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.user import UserModel, AuthSessionModel
from storefront.data.models.address import AddressModel
from storefront.data.models.guest import GuestModel
from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderItemModel

__all__ = [
    "UserModel",
    "AuthSessionModel",
    "AddressModel",
    "GuestModel",
    "ProductModel",
    "ProductVariantModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
