"""Checkout API routes for the storefront"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from giftdrive.models import BuyerIdentity
from ..core.session import DonorSession
from ..services.checkout import shipping_options
from ..services.normalizer import summarize_cost
from ..services.payment import PaymentElement, PaymentForm
from .cart import cart_payload
from .deps import current_session, raise_for_outcome

router = APIRouter(prefix="/api/storefront/checkout", tags=["Checkout"])


class ConfirmPaymentRequest(BaseModel):
    """State of the donor's payment form at submission"""
    payment_method_id: Optional[str] = None
    element_ready: bool = False
    element_mounted: bool = True
    form_mounted: bool = True

    def to_form(self) -> Optional[PaymentForm]:
        if not self.form_mounted:
            return None
        element = None
        if self.element_mounted:
            element = PaymentElement(payment_method_id=self.payment_method_id, ready=self.element_ready)
        return PaymentForm(payment_element=element)


def checkout_payload(session: DonorSession) -> dict:
    checkout = session.checkout
    cart = session.cart.snapshot
    order = checkout.order
    return {
        "session_id": session.session_id,
        "step": checkout.step.value,
        "failed_step": checkout.failed_step.value if checkout.failed_step else None,
        "processing": checkout.processing,
        "error": checkout.error,
        "client_secret": checkout.client_secret,
        "issues": [asdict(issue) for issue in checkout.issues],
        "shipping_options": [
            {
                "heading": option.heading,
                "methods": [m.model_dump(mode="json", by_alias=True) for m in option.methods],
            }
            for option in shipping_options(cart)
        ],
        "summary": asdict(summarize_cost(cart.cost if cart else None)),
        "order": order.model_dump(mode="json", by_alias=True) if order else None,
    }


@router.get("")
async def get_checkout(session: DonorSession = Depends(current_session)):
    """Current checkout step, banner and shipping quotes"""
    return checkout_payload(session)


@router.post("/begin")
async def begin_checkout(session: DonorSession = Depends(current_session)):
    """Open the address form"""
    if session.cart.snapshot is None:
        await session.cart.fetch()
    raise_for_outcome(session.checkout.begin())
    return checkout_payload(session)


@router.post("/identity")
async def submit_identity(identity: BuyerIdentity, session: DonorSession = Depends(current_session)):
    """Save the donor's address and load shipping and tax"""
    raise_for_outcome(await session.checkout.submit_identity(identity))
    return checkout_payload(session)


@router.post("/identity/edit")
async def edit_identity(session: DonorSession = Depends(current_session)):
    """Return to the address form"""
    raise_for_outcome(session.checkout.edit_identity())
    return checkout_payload(session)


@router.post("/payment-intent")
async def create_payment_intent(session: DonorSession = Depends(current_session)):
    """Validate the cart and create a payment intent"""
    raise_for_outcome(await session.checkout.create_payment_intent())
    return checkout_payload(session)


@router.post("/confirm")
async def confirm_payment(request: ConfirmPaymentRequest, session: DonorSession = Depends(current_session)):
    """Confirm the payment and place the order"""
    raise_for_outcome(await session.checkout.confirm_payment(request.to_form()))
    return checkout_payload(session)


@router.post("/retry")
async def retry_checkout(session: DonorSession = Depends(current_session)):
    """Go back to the step that failed"""
    raise_for_outcome(session.checkout.retry())
    return checkout_payload(session)


@router.post("/cancel")
async def cancel_checkout(session: DonorSession = Depends(current_session)):
    """Leave checkout and refresh the cart"""
    raise_for_outcome(await session.checkout.cancel())
    return {**checkout_payload(session), "cart": cart_payload(session)}
