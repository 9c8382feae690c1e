"""Payment intent and order routes for the mock cart backend"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, HTTPException

from giftdrive.models import (
    FinalizedOrder,
    FinalizeOrderRequest,
    StripeIntentRequest,
    StripeIntentResponse,
)
from ..database.carts import cart_db
from ..database.needs import need_db
from ..database.orders import order_db
from .cart import CART_COOKIE, require_cart

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Checkout"])


@router.post("/api/checkout/create-stripe-intent", response_model=StripeIntentResponse)
async def create_stripe_intent(request: StripeIntentRequest):
    """Create a payment intent for the cart total"""
    if request.amount <= 0:
        raise HTTPException(status_code=400, detail="Invalid amount.")
    if not request.currency:
        raise HTTPException(status_code=400, detail="Currency is required.")

    intent = order_db.create_intent(request.cart_id, request.amount, request.currency.lower())
    logger.info(f"Payment intent {intent.id} created: {intent.amount} {intent.currency}")
    return StripeIntentResponse(client_secret=intent.client_secret)


@router.post("/api/orders/finalize-rye-order", response_model=FinalizedOrder)
async def finalize_order(
    request: FinalizeOrderRequest,
    guest_cart_token: Optional[str] = Cookie(default=None, alias=CART_COOKIE),
):
    """Record a paid cart as an order and count it against its needs"""
    cart = require_cart(guest_cart_token, "No active cart found to finalize.")
    if cart.id != request.rye_cart_id:
        raise HTTPException(status_code=404, detail="Cart ID does not match your active cart.")
    if not cart.lines:
        raise HTTPException(status_code=400, detail="Cart is empty")

    intent = order_db.get_intent(request.payment_intent_id)
    if not intent:
        raise HTTPException(status_code=400, detail="Unknown payment intent.")
    if intent.finalized:
        raise HTTPException(status_code=409, detail="This payment has already been used for an order.")
    if intent.amount != request.amount_in_cents:
        raise HTTPException(status_code=400, detail="Payment amount does not match the order total.")

    order = order_db.create_order(cart, intent)
    for line in cart.lines:
        need_db.record_purchase(line.need_ref_type, line.need_ref_id, line.quantity)

    # Clear the cart after successful checkout
    cart_db.delete_cart(cart.token)

    logger.info(f"Order {order.order_id} created for cart {cart.id}: {order.amount} {order.currency}")
    return FinalizedOrder(order_id=order.order_id)
