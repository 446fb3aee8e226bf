# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import CartLineNotFound, CartNotFound, InvalidQuantity, UnknownVariant
from storefront.domain.identity import GuestOwner, Owner, UserOwner
from storefront.repos.cart_repo import CartRepo
from storefront.repos.guest_repo import GuestRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.settings import DELIVERY_FEE


def _validate_quantity(quantity) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity=quantity)
    return quantity


def line_unit_price(item: CartItemModel) -> Decimal:
    return Decimal(item.variant.effective_price)


class CartService:
    """
    Use cases for the cart domain.
    Commands (create, add, update, remove, clear, merge) commit their own
    transaction; queries only read.
    """

    def __init__(self, db: Session, delivery_fee: Decimal = DELIVERY_FEE):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.guests = GuestRepo(db)
        self.delivery_fee = delivery_fee

    # query

    def get_cart(self, owner: Owner | None) -> Dict[str, Any]:
        cart = self.repo.get_cart_for_owner(owner) if owner else None
        if not cart:
            return self._summary(None, [])
        return self._summary(cart.id, self.repo.get_cart_items_with_variants(cart.id))

    def cart_id_for(self, owner: Owner | None) -> int | None:
        """Id of the owner's existing cart; never creates one."""
        cart = self.repo.get_cart_for_owner(owner) if owner else None
        return cart.id if cart else None

    def get_cart_by_id(self, cart_id: int) -> Dict[str, Any]:
        return self._summary(cart_id, self.repo.get_cart_items_with_variants(cart_id))

    def _summary(self, cart_id: int | None, items: list[CartItemModel]) -> Dict[str, Any]:
        lines = []
        subtotal = Decimal("0.00")
        for item in items:
            unit_price = line_unit_price(item)
            line_total = unit_price * item.quantity
            subtotal += line_total
            lines.append(
                {
                    "id": item.id,
                    "variant_id": item.variant_id,
                    "product_id": item.variant.product_id,
                    "name": item.variant.product.name,
                    "size": item.variant.size,
                    "color": item.variant.color,
                    "quantity": item.quantity,
                    "price": Decimal(item.variant.price),
                    "sale_price": item.variant.sale_price,
                    "unit_price": unit_price,
                    "line_total": line_total,
                }
            )

        delivery_fee = self.delivery_fee if lines else Decimal("0.00")
        return {
            "cart_id": cart_id,
            "items": lines,
            "item_count": sum(line["quantity"] for line in lines),
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "total": subtotal + delivery_fee,
        }

    # commands

    def get_or_create_cart(self, owner: Owner) -> int:
        try:
            cart = self.repo.get_or_create_cart(owner)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return cart.id

    def add_item(self, cart_id: int, variant_id: int, quantity: int = 1) -> None:
        _validate_quantity(quantity)

        try:
            if not self.products.get_variant(variant_id):
                raise UnknownVariant(variant_id=variant_id)

            if not self.repo.add_or_increment(cart_id, variant_id, quantity):
                raise CartNotFound(cart_id=cart_id)
            self.repo.touch(cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    def update_quantity(self, line_id: int, quantity: int, cart_id: int | None = None) -> None:
        """Set a line's quantity. Zero or below is rejected; use remove_line."""
        _validate_quantity(quantity)

        try:
            item = self._owned_line(line_id, cart_id)
            self.repo.set_quantity(item.id, quantity)
            self.repo.touch(item.cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    def remove_line(self, line_id: int, cart_id: int | None = None) -> None:
        try:
            item = self._owned_line(line_id, cart_id)
            self.repo.delete_cart_item(item.id)
            self.repo.touch(item.cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    def clear_cart(self, cart_id: int) -> int:
        try:
            removed = self.repo.clear_items(cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return removed

    def _owned_line(self, line_id: int, cart_id: int | None) -> CartItemModel:
        item = self.repo.get_cart_item(line_id)
        if not item or (cart_id is not None and item.cart_id != cart_id):
            raise CartLineNotFound(line_id=line_id)
        return item

    # guest -> user

    def merge_guest_into_user(self, guest: GuestOwner, user: UserOwner) -> int | None:
        """
        Fold the guest's cart into the user's cart and retire the guest.

        - no guest cart: nothing to fold
        - no user cart: the guest cart is re-owned as is
        - both: guest lines are added onto the user's lines, guest cart deleted

        Running it again afterwards finds no guest cart and changes nothing.
        """
        try:
            guest_cart = self.repo.get_cart_for_owner(guest)
            user_cart = self.repo.get_cart_for_owner(user)
            target_id = user_cart.id if user_cart else None

            if guest_cart and not user_cart:
                try:
                    self.repo.reassign_to_user(guest_cart.id, user.user_id)
                    target_id = guest_cart.id
                except IntegrityError:
                    # user cart appeared concurrently; fold into it instead
                    user_cart = self.repo.get_cart_for_owner(user)

            if guest_cart and user_cart:
                for line in self.repo.get_cart_items(guest_cart.id):
                    if not self.repo.add_or_increment(user_cart.id, line.variant_id, line.quantity):
                        raise CartNotFound(cart_id=user_cart.id)
                self.repo.delete_cart(guest_cart.id)
                self.repo.touch(user_cart.id)
                target_id = user_cart.id

            self.guests.delete(guest.guest_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return target_id
