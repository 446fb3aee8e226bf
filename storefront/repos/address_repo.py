# storefront/repos/address_repo.py
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: int) -> list[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.id)
            ).scalars()
        )

    def get_for_user(self, address_id: int, user_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def create(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def clear_default(self, user_id: int, address_type: str) -> int:
        result = self.db.execute(
            update(AddressModel)
            .where(
                AddressModel.user_id == user_id,
                AddressModel.type == address_type,
            )
            .values(is_default=False)
        )
        return result.rowcount

    def delete(self, address_id: int, user_id: int) -> int:
        result = self.db.execute(
            delete(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
