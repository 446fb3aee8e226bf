# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderItemModel, OrderModel
from storefront.data.models.product import ProductVariantModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        order.items = items
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_payment_session(self, payment_session_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.payment_session_id == payment_session_id)
        ).scalar_one_or_none()

    def get_order_items_with_variants(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .options(
                    selectinload(OrderItemModel.variant).selectinload(ProductVariantModel.product)
                )
                .order_by(OrderItemModel.id)
            ).scalars()
        )

    def list_for_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(
                    selectinload(OrderModel.items)
                    .selectinload(OrderItemModel.variant)
                    .selectinload(ProductVariantModel.product)
                )
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def update_order_status(self, order: OrderModel, status: str) -> OrderModel:
        order.status = status
        self.db.flush()
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
