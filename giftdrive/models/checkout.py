"""Checkout and order models"""

from typing import Optional

from pydantic import Field

from .cart import WireModel


class StripeIntentRequest(WireModel):
    cart_id: str = Field(alias="cartId")
    amount: int
    currency: str


class StripeIntentResponse(WireModel):
    client_secret: str = Field(alias="clientSecret")


class ValidationIssue(WireModel):
    """Cart line whose quantity no longer fits the need"""
    item_id: Optional[str] = Field(default=None, alias="itemId")
    item_name: Optional[str] = Field(default=None, alias="itemName")
    error: str = ""
    requested: Optional[int] = None
    available: Optional[int] = None


class CheckoutValidation(WireModel):
    is_valid: bool = Field(alias="isValid")
    issues: list[ValidationIssue] = Field(default_factory=list)


class FinalizeOrderRequest(WireModel):
    rye_cart_id: str = Field(alias="ryeCartId")
    payment_intent_id: str = Field(alias="paymentIntentId")
    amount_in_cents: int = Field(alias="amountInCents")
    currency: str


class FinalizedOrder(WireModel):
    message: str = "Order placed successfully!"
    order_id: str = Field(alias="orderId")
