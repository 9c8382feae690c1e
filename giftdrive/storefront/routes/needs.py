"""Need listing and add-to-cart routes"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from giftdrive.models import Need
from ..core.errors import PreconditionError
from ..core.session import DonorSession
from ..services.needs import NeedCard
from .deps import current_session, raise_for_outcome

router = APIRouter(prefix="/api/storefront/needs", tags=["Needs"])


class NeedRef(BaseModel):
    """Identifies a need on the page currently loaded in the session"""
    ref_id: int


class SelectVariantRequest(NeedRef):
    variant_id: str


class AddNeedRequest(NeedRef):
    quantity: Optional[int] = 1


def card_payload(card: NeedCard) -> dict:
    info = card.variants
    return {
        "ref_id": card.need.ref_id(card.key_type),
        "ref_type": card.key_type.value,
        "title": card.view.title,
        "subline": card.view.subline,
        "image_url": card.view.image_url,
        "price": card.view.price,
        "price_display": card.view.price_display,
        "needed": card.need.needed,
        "remaining": card.need.remaining,
        "state": card.state.value,
        "label": card.label,
        "can_add": card.can_add,
        "loading_variants": card.loading_variants,
        "selected_variant_id": card.selected_variant_id,
        "variants": [
            variant.model_dump(mode="json", by_alias=True) for variant in info.available
        ] if info else None,
    }


def page_payload(session: DonorSession) -> dict:
    return {
        "session_id": session.session_id,
        "ref_type": session.needs.key_type.value if session.needs.key_type else None,
        "needs": [card_payload(card) for card in session.needs.cards()],
    }


def find_need(session: DonorSession, ref_id: int) -> Need:
    need = session.needs.find(ref_id)
    if need is None:
        raise HTTPException(status_code=404, detail="Item not found on this page")
    return need


@router.get("/children/{child_id}")
async def get_child_needs(child_id: int, session: DonorSession = Depends(current_session)):
    """A child's needs with card state against the donor's cart"""
    outcome, _ = await asyncio.gather(session.needs.load_child_needs(child_id), session.cart.fetch())
    raise_for_outcome(outcome)
    await session.needs.resolve_variants()
    return page_payload(session)


@router.get("/drives/{drive_id}")
async def get_drive_needs(drive_id: int, session: DonorSession = Depends(current_session)):
    """A drive's general needs with card state against the donor's cart"""
    outcome, _ = await asyncio.gather(session.needs.load_drive_needs(drive_id), session.cart.fetch())
    raise_for_outcome(outcome)
    await session.needs.resolve_variants()
    return page_payload(session)


@router.post("/variants")
async def load_variants(request: NeedRef, session: DonorSession = Depends(current_session)):
    """Load options for one donor-choice need"""
    need = find_need(session, request.ref_id)
    raise_for_outcome(await session.variants.fetch_variants(need, session.needs.key_type))
    return page_payload(session)


@router.post("/variants/select")
async def select_variant(request: SelectVariantRequest, session: DonorSession = Depends(current_session)):
    """Pick a different option than the default"""
    need = find_need(session, request.ref_id)
    try:
        session.variants.select(need, session.needs.key_type, request.variant_id)
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return page_payload(session)


@router.post("/add")
async def add_need_to_cart(request: AddNeedRequest, session: DonorSession = Depends(current_session)):
    """Add a need's item to the cart and refresh remaining counts"""
    need = find_need(session, request.ref_id)
    raise_for_outcome(await session.needs.add_to_cart(need, request.quantity))
    return page_payload(session)
