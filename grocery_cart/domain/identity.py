# grocery_cart/domain/identity.py
from typing import Union

from pydantic import BaseModel, ConfigDict

from grocery_cart.domain.errors import InvalidIdentity


class UserIdentity(BaseModel):
    user_id: str

    model_config = ConfigDict(frozen=True)

    @property
    def cart_id(self) -> str:
        return f"user:{self.user_id}"


class GuestIdentity(BaseModel):
    session_token: str

    model_config = ConfigDict(frozen=True)

    @property
    def cart_id(self) -> str:
        return f"guest:{self.session_token}"


CartIdentity = Union[UserIdentity, GuestIdentity]


def _usable(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_identity(user_id: str | None = None, session_token: str | None = None) -> CartIdentity:
    """
    Zamienia (user_id, token sesji) na tozsamosc koszyka.
    user_id ma pierwszenstwo; tokenow tu nie generujemy, robi to warstwa transportu.
    """
    uid = _usable(user_id)
    if uid:
        return UserIdentity(user_id=uid)

    token = _usable(session_token)
    if token:
        return GuestIdentity(session_token=token)

    raise InvalidIdentity("Either user id or guest session token must be provided")
