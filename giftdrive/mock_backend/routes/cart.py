"""Cart API routes for the mock cart backend"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, HTTPException, Response
from fastapi.responses import JSONResponse

from giftdrive.models import (
    AddToCartRequest,
    BuyerIdentityRequest,
    CheckoutValidation,
    NeedRefType,
    RemoveFromCartRequest,
    UpdateCartItemRequest,
    ValidationIssue,
)
from ..database.carts import cart_db
from ..database.needs import need_db
from ..database.products import product_db
from ..models import CartRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])

CART_COOKIE = "guestCartToken"


def set_cart_cookie(response: Response, cart: CartRecord) -> None:
    response.set_cookie(CART_COOKIE, cart.token, httponly=True, samesite="lax", max_age=7 * 24 * 3600)


def require_cart(token: Optional[str], message: str) -> CartRecord:
    cart = cart_db.get_cart(token)
    if not cart:
        raise HTTPException(status_code=404, detail=message)
    return cart


def serialize(cart: CartRecord) -> dict:
    return cart_db.build_cart(cart).model_dump(mode="json", by_alias=True)


@router.get("")
async def get_cart(guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE)):
    """Get the session's cart, null when there is none"""
    cart = cart_db.get_cart(guest_cart_token)
    if not cart:
        return None
    return JSONResponse(serialize(cart))


@router.post("/add")
async def add_to_cart(
    request: AddToCartRequest,
    response: Response,
    guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE),
):
    """Add an item to the cart on behalf of a need"""
    try:
        ref_type = NeedRefType(request.original_need_ref_type)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid originalNeedRefType.")

    need = need_db.get(ref_type, request.original_need_ref_id)
    if not need:
        raise HTTPException(status_code=404, detail="The original item need could not be found or is inactive.")

    entry = product_db.get_item(request.rye_id_to_add, request.marketplace_for_item)
    if not entry:
        raise HTTPException(status_code=404, detail="Item not found in marketplace catalog.")
    if not entry.is_available:
        raise HTTPException(status_code=400, detail=f"{entry.title} is currently unavailable.")

    if request.quantity > need.available:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cannot add item. Requested quantity ({request.quantity}) exceeds available stock "
                f"({need.available}). Max Needed: {need.needed}, Already Purchased: {need.purchased}."
            ),
        )

    cart = cart_db.get_or_create_cart(guest_cart_token)

    # A need maps to at most one cart line
    if cart_db.line_for_need(cart, ref_type, need.ref_id):
        raise HTTPException(status_code=409, detail=f"{need.base_item_name} is already in your cart.")
    if cart_db.find_line(cart, entry.id, entry.marketplace):
        raise HTTPException(status_code=409, detail=f"{entry.title} is already in your cart for another need.")

    cart_db.add_line(cart, entry, request.quantity, need)
    set_cart_cookie(response, cart)
    logger.info(f"Added {request.quantity}x {entry.id} to cart {cart.id} for {ref_type.value} {need.ref_id}")
    return serialize(cart)


@router.post("/remove")
async def remove_from_cart(
    request: RemoveFromCartRequest,
    guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE),
):
    """Remove an item from the cart"""
    cart = require_cart(guest_cart_token, "No active cart found to remove items from.")
    if not cart_db.remove_line(cart, request.item_id, request.marketplace):
        raise HTTPException(status_code=404, detail="Item not found in your cart.")
    return serialize(cart)


@router.post("/update")
async def update_cart_item(
    request: UpdateCartItemRequest,
    guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE),
):
    """Update item quantity in cart"""
    cart = require_cart(guest_cart_token, "No active cart found to update.")
    line = cart_db.find_line(cart, request.item_id, request.marketplace)
    if not line:
        raise HTTPException(status_code=404, detail="Item not found in your local cart to update.")

    if request.quantity > 0:
        need = need_db.get(line.need_ref_type, line.need_ref_id)
        if need and request.quantity > need.available:
            raise HTTPException(
                status_code=400,
                detail=(
                    f'Requested quantity ({request.quantity}) for "{need.base_item_name}" exceeds available '
                    f"stock ({need.available}). Max Needed: {need.needed}, Already Purchased: {need.purchased}."
                ),
            )

    cart_db.update_quantity(cart, request.item_id, request.marketplace, request.quantity)
    return serialize(cart)


@router.post("/buyer-identity")
async def update_buyer_identity(
    request: BuyerIdentityRequest,
    guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE),
):
    """Attach the donor's address; the returned cart carries shipping and tax"""
    cart = require_cart(guest_cart_token, "No active cart found.")
    if request.cart_id and request.cart_id != cart.id:
        raise HTTPException(status_code=404, detail="Cart ID does not match your active cart.")
    cart_db.set_buyer_identity(cart, request.buyer_identity)
    return serialize(cart)


@router.post("/validate-checkout", response_model=CheckoutValidation)
async def validate_checkout(guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE)):
    """Check every line against what its need still requires"""
    cart = require_cart(guest_cart_token, "No active cart found for validation.")

    issues = []
    for line in cart.lines:
        need = need_db.get(line.need_ref_type, line.need_ref_id)
        if need is None:
            issues.append(ValidationIssue(
                item_id=line.item_id,
                error=f"Original need (Source: {line.need_ref_type.value}, ID: {line.need_ref_id}) not found or is inactive.",
            ))
        elif line.quantity > need.available:
            issues.append(ValidationIssue(
                item_id=line.item_id,
                item_name=need.base_item_name,
                error=(
                    f"Requested quantity ({line.quantity}) exceeds available stock ({need.available}). "
                    f"Max Needed: {need.needed}, Already Purchased: {need.purchased}."
                ),
                requested=line.quantity,
                available=need.available,
            ))

    validation = CheckoutValidation(is_valid=not issues, issues=issues)
    if issues:
        return JSONResponse(status_code=400, content=validation.model_dump(mode="json", by_alias=True))
    return validation
