"""Cart API routes for the storefront"""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from giftdrive.models import Marketplace
from ..core.config import settings
from ..core.session import DonorSession
from ..services.cart_store import set_quantity
from ..services.checkout import collect_cart_issues
from ..services.normalizer import build_cart_view
from .deps import current_session, raise_for_outcome

router = APIRouter(prefix="/api/storefront/cart", tags=["Cart"])


class LineQuantityRequest(BaseModel):
    """Request to change a cart line's quantity"""
    item_id: str
    marketplace: Marketplace
    quantity: int = Field(ge=0)


class LineRemoveRequest(BaseModel):
    """Request to remove a cart line"""
    item_id: str
    marketplace: Marketplace


def cart_payload(session: DonorSession) -> dict:
    """Normalized cart view plus the error banner for the current checkout step"""
    cart = session.cart.snapshot
    view = build_cart_view(cart, settings.placeholder_image)
    return {
        "session_id": session.session_id,
        "cart_id": cart.id if cart else None,
        "loading": session.cart.loading,
        "has_items": view.has_items,
        "stores": [
            {
                "heading": store.heading,
                "store": store.store,
                "marketplace": store.marketplace.value,
                "lines": [{**asdict(line), "price_display": line.price_display} for line in store.lines],
            }
            for store in view.stores
        ],
        "summary": asdict(view.summary),
        "issues": [asdict(issue) for issue in collect_cart_issues(cart, session.checkout.step)],
    }


@router.get("")
async def get_cart(session: DonorSession = Depends(current_session)):
    """Fetch the cart from the backend and return its display model"""
    await session.cart.fetch()
    return cart_payload(session)


@router.post("/lines/quantity")
async def change_quantity(
    request: LineQuantityRequest,
    session: DonorSession = Depends(current_session),
):
    """Set a line's quantity; zero removes the line"""
    raise_for_outcome(await set_quantity(session.cart, request.item_id, request.marketplace, request.quantity))
    return cart_payload(session)


@router.post("/lines/remove")
async def remove_line(
    request: LineRemoveRequest,
    session: DonorSession = Depends(current_session),
):
    """Remove a line from the cart"""
    raise_for_outcome(await session.cart.remove(request.item_id, request.marketplace))
    return cart_payload(session)


@router.get("/notifications")
async def drain_notifications(session: DonorSession = Depends(current_session)):
    """Pending toasts for the donor, oldest first"""
    return {
        "session_id": session.session_id,
        "notifications": [
            {"level": n.level.value, "message": n.message, "created_at": n.created_at.isoformat()}
            for n in session.notifications.drain()
        ],
    }
