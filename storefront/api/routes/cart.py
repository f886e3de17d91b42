from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from storefront.api.deps import get_cart_engine, get_current_user
from storefront.api.schemas.cart import (
    CartItemRemoveSchema,
    CartItemSchema,
    CartMergeSchema,
    CartOut,
    CartOwnerSchema,
)
from storefront.core.errors import CartError
from storefront.models.cart import OwnerKey
from storefront.services.cart_engine import CartEngine

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _http_error(exc: CartError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("", response_model=CartOut)
def get_cart(
    user_id: Optional[str] = Query(None, alias="userId"),
    guest_id: Optional[str] = Query(None, alias="guestId"),
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Get the signed-in user's or the guest's cart. userId wins when both are given.
    """
    try:
        cart = engine.resolve(OwnerKey.resolve(user_id, guest_id))
    except CartError as e:
        raise _http_error(e)
    if cart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found")
    return CartOut.from_cart(cart)


@router.post("", response_model=CartOut)
def add_to_cart(payload: CartItemSchema, response: Response, engine: CartEngine = Depends(get_cart_engine)):
    """
    Add a product to the cart of a guest or a signed-in user.
    A request carrying neither id starts a new guest cart; its guestId is in the response.
    Returns 201 when the cart was created by this call, 200 otherwise.
    """
    try:
        if payload.user_id or payload.guest_id:
            owner = OwnerKey.resolve(payload.user_id, payload.guest_id)
        else:
            owner = OwnerKey.guest(engine.new_guest_id())
        cart, created = engine.add_item(owner, payload.product_id, payload.size or "", payload.quantity)
    except CartError as e:
        raise _http_error(e)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return CartOut.from_cart(cart)


@router.put("", response_model=CartOut)
def update_cart_item(payload: CartItemSchema, engine: CartEngine = Depends(get_cart_engine)):
    """
    Set a line's quantity. Quantity 0 removes the line; the cart itself is kept.
    """
    try:
        owner = OwnerKey.resolve(payload.user_id, payload.guest_id)
        cart = engine.update_item(owner, payload.product_id, payload.size or "", payload.quantity)
    except CartError as e:
        raise _http_error(e)
    return CartOut.from_cart(cart)


@router.delete("", response_model=CartOut)
def remove_cart_item(payload: CartItemRemoveSchema, engine: CartEngine = Depends(get_cart_engine)):
    try:
        owner = OwnerKey.resolve(payload.user_id, payload.guest_id)
        cart = engine.remove_item(owner, payload.product_id, payload.size or "")
    except CartError as e:
        raise _http_error(e)
    return CartOut.from_cart(cart)


@router.delete("/items", response_model=CartOut)
def clear_cart(payload: CartOwnerSchema, engine: CartEngine = Depends(get_cart_engine)):
    """Empty the cart (e.g. after checkout). The empty cart stays addressable."""
    try:
        cart = engine.clear(OwnerKey.resolve(payload.user_id, payload.guest_id))
    except CartError as e:
        raise _http_error(e)
    return CartOut.from_cart(cart)


@router.post("/merge", response_model=CartOut)
def merge_cart(
    payload: CartMergeSchema,
    current_user: Dict[str, Any] = Depends(get_current_user),
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Merge the guest cart into the signed-in user's cart on login.
    400 if the guest cart is empty, 404 if neither cart exists.
    """
    user_id = str(current_user.get("id") or "")
    try:
        cart = engine.merge(guest_id=payload.guest_id, user_id=user_id)
    except CartError as e:
        raise _http_error(e)
    return CartOut.from_cart(cart)
