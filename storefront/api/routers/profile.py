# storefront/api/routers/profile.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_db, optional_identity
from storefront.domain.errors import NotAuthorized
from storefront.domain.identity import ResolvedIdentity
from storefront.domain.schemas import (
    AddressIn,
    AddressOut,
    AddressUpdateIn,
    ProfileImageIn,
    ProfileOut,
    ProfileUpdateIn,
)
from storefront.services.profile_service import ProfileService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


def signed_in_user(identity: ResolvedIdentity = Depends(optional_identity)) -> int:
    if not identity.is_authenticated:
        raise NotAuthorized("Not authenticated")
    return identity.owner.user_id


@router.get("", response_model=ProfileOut)
def get_profile(user_id: int = Depends(signed_in_user), db: Session = Depends(get_db)):
    return ProfileService(db).get_profile(user_id)


@router.patch("", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdateIn,
    user_id: int = Depends(signed_in_user),
    db: Session = Depends(get_db),
):
    profile = ProfileService(db).update_profile(user_id, payload)
    logger.info("profile.updated", user_id=user_id)
    return profile


@router.put("/image", response_model=ProfileOut)
def update_profile_image(
    payload: ProfileImageIn,
    user_id: int = Depends(signed_in_user),
    db: Session = Depends(get_db),
):
    return ProfileService(db).update_profile_image(user_id, payload.image)


@router.get("/addresses", response_model=List[AddressOut])
def list_addresses(user_id: int = Depends(signed_in_user), db: Session = Depends(get_db)):
    return ProfileService(db).list_addresses(user_id)


@router.post("/addresses", response_model=AddressOut, status_code=201)
def add_address(
    payload: AddressIn,
    user_id: int = Depends(signed_in_user),
    db: Session = Depends(get_db),
):
    address = ProfileService(db).add_address(user_id, payload)
    logger.info("address.added", user_id=user_id, address_id=address.id)
    return address


@router.patch("/addresses/{address_id}", response_model=AddressOut)
def update_address(
    address_id: int,
    payload: AddressUpdateIn,
    user_id: int = Depends(signed_in_user),
    db: Session = Depends(get_db),
):
    return ProfileService(db).update_address(user_id, address_id, payload)


@router.delete("/addresses/{address_id}", status_code=204)
def delete_address(
    address_id: int,
    user_id: int = Depends(signed_in_user),
    db: Session = Depends(get_db),
):
    ProfileService(db).delete_address(user_id, address_id)
    logger.info("address.deleted", user_id=user_id, address_id=address_id)
    return None
