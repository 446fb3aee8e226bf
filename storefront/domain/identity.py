# storefront/domain/identity.py
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UserOwner:
    user_id: int


@dataclass(frozen=True)
class GuestOwner:
    guest_id: int


# a cart belongs to exactly one of these
Owner = Union[UserOwner, GuestOwner]


@dataclass(frozen=True)
class ResolvedIdentity:
    """Outcome of resolving a request's caller.

    ``issued_guest_token`` is set only when a new guest was minted and must be
    written back to the client.
    """

    owner: Owner | None
    issued_guest_token: str | None = None
    guest_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self.owner, UserOwner)

    @property
    def is_guest(self) -> bool:
        return isinstance(self.owner, GuestOwner)
