# storefront/repos/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductVariantModel
from storefront.domain.identity import GuestOwner, Owner, UserOwner


def _owner_clause(owner: Owner):
    if isinstance(owner, UserOwner):
        return CartModel.user_id == owner.user_id
    if isinstance(owner, GuestOwner):
        return CartModel.guest_id == owner.guest_id
    raise TypeError(f"Unsupported cart owner: {owner!r}")


def _owner_columns(owner: Owner) -> dict:
    if isinstance(owner, UserOwner):
        return {"user_id": owner.user_id, "guest_id": None}
    if isinstance(owner, GuestOwner):
        return {"user_id": None, "guest_id": owner.guest_id}
    raise TypeError(f"Unsupported cart owner: {owner!r}")


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # carts

    def get_cart_for_owner(self, owner: Owner) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(_owner_clause(owner))
        ).scalar_one_or_none()

    def get_or_create_cart(self, owner: Owner) -> CartModel:
        existing = self.get_cart_for_owner(owner)
        if existing:
            return existing

        try:
            with self.db.begin_nested():
                cart = CartModel(**_owner_columns(owner))
                self.db.add(cart)
                self.db.flush()
        except IntegrityError:
            # another request created it first; its row is authoritative
            return self.db.execute(
                select(CartModel).where(_owner_clause(owner))
            ).scalar_one()
        return cart

    def reassign_to_user(self, cart_id: int, user_id: int) -> None:
        """Swap the owner of a guest cart to a user. Raises IntegrityError if the user already has one."""
        with self.db.begin_nested():
            self.db.execute(
                update(CartModel)
                .where(CartModel.id == cart_id)
                .values(user_id=user_id, guest_id=None, updated_at=datetime.now(timezone.utc))
            )

    def touch(self, cart_id: int) -> None:
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(updated_at=datetime.now(timezone.utc))
        )

    def delete_cart(self, cart_id: int) -> None:
        self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        self.db.execute(delete(CartModel).where(CartModel.id == cart_id))

    # lines

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_items_with_variants(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .options(
                    selectinload(CartItemModel.variant).selectinload(ProductVariantModel.product)
                )
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, line_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, line_id)

    def _increment(self, cart_id: int, variant_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.variant_id == variant_id,
            )
            .values(quantity=CartItemModel.quantity + quantity)
        )
        return result.rowcount

    def add_or_increment(self, cart_id: int, variant_id: int, quantity: int) -> bool:
        """quantity = quantity + delta at the storage layer; insert when the line is new.

        Returns False when no line could be written, e.g. the cart is gone.
        """
        if self._increment(cart_id, variant_id, quantity):
            return True

        try:
            with self.db.begin_nested():
                self.db.add(
                    CartItemModel(
                        cart_id=cart_id,
                        variant_id=variant_id,
                        quantity=quantity,
                    )
                )
                self.db.flush()
        except IntegrityError:
            # a lost insert race on (cart_id, variant_id) leaves a line to bump;
            # a missing cart leaves nothing
            return self._increment(cart_id, variant_id, quantity) > 0
        return True

    def set_quantity(self, line_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.id == line_id)
            .values(quantity=quantity)
        )
        return result.rowcount

    def delete_cart_item(self, line_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.id == line_id))
        return result.rowcount

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
