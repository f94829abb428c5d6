# grocery_cart/api/dependencies.py
import secrets

from fastapi import Depends, Header, Request, Response
from sqlalchemy.orm import Session

from grocery_cart.data.database import get_db
from grocery_cart.domain.identity import CartIdentity, resolve_identity
from grocery_cart.services.cart_cache import CartCache
from grocery_cart.services.cart_service import CartService
from grocery_cart.services.group_order_client import GroupOrderClient
from grocery_cart.services.product_client import ProductClient
from grocery_cart.utils.settings import CART_TTL_SECONDS, GUEST_SESSION_COOKIE
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


def get_cache() -> CartCache:
    return CartCache()


def get_product_client() -> ProductClient:
    return ProductClient()


def get_group_order_client() -> GroupOrderClient:
    return GroupOrderClient()


def get_service(
    db: Session = Depends(get_db),
    cache: CartCache = Depends(get_cache),
    product_client: ProductClient = Depends(get_product_client),
    group_order_client: GroupOrderClient = Depends(get_group_order_client),
) -> CartService:
    return CartService(
        db=db,
        cache=cache,
        product_client=product_client,
        group_order_client=group_order_client,
    )


def session_token_from(request: Request, x_session_id: str | None) -> str | None:
    return x_session_id or request.cookies.get(GUEST_SESSION_COOKIE)


def cart_identity(
    request: Request,
    response: Response,
    x_user_id: str | None = Header(None),
    x_session_id: str | None = Header(None),
) -> CartIdentity:
    """
    Tozsamosc dla odczytu i dodawania - gosc bez tokenu dostaje nowy (cookie).
    X-User-Id ustawia gateway po uwierzytelnieniu.
    """
    token = session_token_from(request, x_session_id)

    if not x_user_id:
        if not token:
            token = secrets.token_urlsafe(24)
            logger.info("Nowa sesja goscia")
        response.set_cookie(
            GUEST_SESSION_COOKIE,
            token,
            httponly=True,
            samesite="lax",
            max_age=CART_TTL_SECONDS,
        )

    return resolve_identity(x_user_id, token)


def existing_identity(
    request: Request,
    x_user_id: str | None = Header(None),
    x_session_id: str | None = Header(None),
) -> CartIdentity:
    return resolve_identity(x_user_id, session_token_from(request, x_session_id))
