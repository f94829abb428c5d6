#grocery_cart/api/routers/carts.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from grocery_cart.api.dependencies import (
    cart_identity,
    existing_identity,
    get_service,
    session_token_from,
)
from grocery_cart.domain.identity import CartIdentity
from grocery_cart.domain.schemas import CartOut, CartResult, ItemIn, MergeIn, QuantityIn
from grocery_cart.services.cart_service import CartService
from grocery_cart.utils.settings import GUEST_SESSION_COOKIE

router = APIRouter(prefix="/cart", tags=["cart"])


def _respond(result: CartResult) -> CartOut:
    if result.rejection is not None:
        status = 404 if result.rejection.is_not_found else 422
        raise HTTPException(status_code=status, detail=result.rejection.model_dump(mode="json"))
    return CartOut(cart=result.cart, warnings=result.warnings)


@router.get("", response_model=CartOut)
def get_cart(
    identity: CartIdentity = Depends(cart_identity),
    svc: CartService = Depends(get_service),
):
    return CartOut(cart=svc.get_or_create_cart(identity))


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    identity: CartIdentity = Depends(cart_identity),
    svc: CartService = Depends(get_service),
):
    return _respond(
        svc.add_item(
            identity,
            product_id=payload.product_id,
            quantity=payload.quantity,
            order_type=payload.order_type,
            group_order_id=payload.group_order_id,
        )
    )


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: str,
    payload: QuantityIn,
    identity: CartIdentity = Depends(existing_identity),
    svc: CartService = Depends(get_service),
):
    return _respond(svc.update_item_quantity(identity, item_id, payload.quantity))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    identity: CartIdentity = Depends(existing_identity),
    svc: CartService = Depends(get_service),
):
    return _respond(svc.remove_item(identity, item_id))


@router.delete("", response_model=CartOut)
def clear_cart(
    identity: CartIdentity = Depends(existing_identity),
    svc: CartService = Depends(get_service),
):
    return CartOut(cart=svc.clear_cart(identity))


@router.post("/merge", response_model=CartOut)
def merge_cart(
    request: Request,
    response: Response,
    payload: MergeIn | None = None,
    x_user_id: str | None = Header(None),
    x_session_id: str | None = Header(None),
    svc: CartService = Depends(get_service),
):
    """
    Po zalogowaniu: przenosi koszyk goscia do koszyka uzytkownika.
    Bezpieczne do ponowienia - drugi raz nic nie zmienia.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User must be authenticated")

    token = (payload.session_token if payload else None) or session_token_from(request, x_session_id)
    if not token:
        raise HTTPException(status_code=400, detail="Session ID is required")

    result = svc.merge_guest_into_user(token, x_user_id)
    response.delete_cookie(GUEST_SESSION_COOKIE)
    return _respond(result)
