from typing import Optional
from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.config import settings
from app.core.tenant_context import get_storefront_tenant, get_storefront_user, require_storefront_user
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.cart import Cart, CartAddRequest, CartCountResponse, CartRemoveRequest, CartUpdateRequest
from app.services.cart import (
    CART_COOKIE_MAX_AGE,
    CART_COOKIE_NAME,
    cart_id_for,
    cart_service,
    new_session_id,
)

router = APIRouter()


class CartMergeResponse(BaseModel):
    message: str
    merged: int
    updated: int
    cart: Cart


def _ensure_cart_id(response: Response, user: Optional[User], session_id: Optional[str]) -> str:
    """Cart id for this shopper, starting a guest session cookie when there is none."""
    cart_id = cart_id_for(user, session_id)
    if cart_id is None:
        session_id = new_session_id()
        response.set_cookie(
            CART_COOKIE_NAME,
            session_id,
            max_age=CART_COOKIE_MAX_AGE,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )
        cart_id = cart_id_for(None, session_id)
    return cart_id


@router.get("", response_model=Cart)
def get_cart(
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    return cart_service.get_cart(tenant.id, cart_id_for(user, cart_session_id))


@router.get("/count", response_model=CartCountResponse)
def get_cart_count(
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    return CartCountResponse(count=cart_service.count(tenant.id, cart_id_for(user, cart_session_id)))


@router.post("/items", response_model=Cart)
def add_to_cart(
    data: CartAddRequest,
    response: Response,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    """
    Add an item to the cart.

    Guests get a cart session cookie on their first add.

    Raises:
        HTTPException 404: Unknown product or variant
        HTTPException 400: Product unavailable or not enough stock
    """
    cart_id = _ensure_cart_id(response, user, cart_session_id)
    return cart_service.add_item(db, tenant.id, cart_id, data.product_id, data.variant_id, data.quantity)


@router.patch("/items", response_model=Cart)
def update_cart_item(
    data: CartUpdateRequest,
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    cart_id = cart_id_for(user, cart_session_id)
    if cart_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not in cart"
        )
    return cart_service.update_item(tenant.id, cart_id, data.product_id, data.variant_id, data.quantity)


@router.post("/items/remove", response_model=Cart)
def remove_cart_item(
    data: CartRemoveRequest,
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    cart_id = cart_id_for(user, cart_session_id)
    if cart_id is None:
        return Cart()
    return cart_service.remove_item(tenant.id, cart_id, data.product_id, data.variant_id)


@router.delete("", response_model=Cart)
def clear_cart(
    tenant: Tenant = Depends(get_storefront_tenant),
    user: Optional[User] = Depends(get_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    return cart_service.clear(tenant.id, cart_id_for(user, cart_session_id))


@router.post("/merge", response_model=CartMergeResponse)
def merge_cart(
    response: Response,
    tenant: Tenant = Depends(get_storefront_tenant),
    user: User = Depends(require_storefront_user),
    cart_session_id: Optional[str] = Cookie(None)
):
    """Move the guest cart into the signed-in user's cart, after login."""
    if not cart_session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No guest cart to merge"
        )

    user_cart_id = cart_id_for(user, None)
    counts = cart_service.merge(tenant.id, cart_id_for(None, cart_session_id), user_cart_id)
    response.delete_cookie(CART_COOKIE_NAME)
    return CartMergeResponse(
        message="Cart merged successfully",
        cart=cart_service.get_cart(tenant.id, user_cart_id),
        **counts,
    )
