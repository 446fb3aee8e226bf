# storefront/services/profile_service.py
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.domain.errors import AddressNotFound, EmailAlreadyRegistered, NotAuthorized
from storefront.domain.schemas import AddressIn, AddressOut, AddressUpdateIn, ProfileOut, ProfileUpdateIn
from storefront.repos.address_repo import AddressRepo
from storefront.repos.user_repo import UserRepo

# line2 is the only address field that may be cleared
_CLEARABLE = {"line2"}


class ProfileService:
    """
    The signed-in customer's profile and saved addresses.
    Every call is scoped to ``user_id``; another user's address reads as missing.
    A user holds at most one default address per type.
    """

    def __init__(self, db: Session):
        self.users = UserRepo(db)
        self.repo = AddressRepo(db)

    def get_profile(self, user_id: int) -> ProfileOut:
        return ProfileOut.model_validate(self._user(user_id))

    def update_profile(self, user_id: int, payload: ProfileUpdateIn) -> ProfileOut:
        changes = payload.model_dump(exclude_unset=True)

        try:
            user = self._user(user_id)
            if changes.get("name") is not None:
                user.name = changes["name"].strip()
            if changes.get("email") is not None:
                email = changes["email"].strip().lower()
                taken = self.users.get_by_email(email)
                if taken and taken.id != user.id:
                    raise EmailAlreadyRegistered()
                user.email = email
            if "image" in changes:
                user.image = changes["image"]
            self.users.commit()
        except IntegrityError as exc:
            self.users.rollback()
            raise EmailAlreadyRegistered() from exc
        except Exception:
            self.users.rollback()
            raise

        return ProfileOut.model_validate(user)

    def update_profile_image(self, user_id: int, image_url: str) -> ProfileOut:
        return self.update_profile(user_id, ProfileUpdateIn(image=image_url))

    def list_addresses(self, user_id: int) -> List[AddressOut]:
        return [AddressOut.model_validate(a) for a in self.repo.list_for_user(user_id)]

    def add_address(self, user_id: int, payload: AddressIn) -> AddressOut:
        try:
            if payload.is_default:
                self.repo.clear_default(user_id, payload.type)
            address = self.repo.create(AddressModel(user_id=user_id, **payload.model_dump()))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return AddressOut.model_validate(address)

    def update_address(self, user_id: int, address_id: int, payload: AddressUpdateIn) -> AddressOut:
        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field in _CLEARABLE
        }

        try:
            address = self.repo.get_for_user(address_id, user_id)
            if not address:
                raise AddressNotFound(address_id=address_id)

            address_type = changes.get("type", address.type)
            is_default = changes.get("is_default", address.is_default)
            if is_default and (address_type != address.type or not address.is_default):
                self.repo.clear_default(user_id, address_type)
            changes["is_default"] = is_default

            for field, value in changes.items():
                setattr(address, field, value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return AddressOut.model_validate(address)

    def delete_address(self, user_id: int, address_id: int) -> None:
        try:
            if not self.repo.delete(address_id, user_id):
                raise AddressNotFound(address_id=address_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

    def _user(self, user_id: int):
        user = self.users.get_user(user_id)
        if not user:
            raise NotAuthorized("Not authenticated")
        return user
