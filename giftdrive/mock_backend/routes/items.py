"""Need and variant routes for the mock cart backend"""

from fastapi import APIRouter, HTTPException

from giftdrive.models import Need, VariantList, VariantsRequest
from ..database.needs import need_db
from ..database.products import product_db

router = APIRouter(prefix="/api", tags=["Items"])


@router.post("/items/fetch-rye-variants-for-product", response_model=VariantList)
async def fetch_variants_for_product(request: VariantsRequest):
    """Purchasable variants of an upstream product"""
    variants = product_db.get_variants(request.rye_product_id, request.marketplace)
    if variants is None:
        raise HTTPException(status_code=404, detail="Product not found in marketplace catalog.")
    return variants


@router.get("/children/{child_id}/items", response_model=list[Need])
async def get_child_items(child_id: int):
    """A child's needs with remaining counts"""
    needs = need_db.child_items(child_id)
    if needs is None:
        raise HTTPException(status_code=404, detail="Child not found")
    return needs


@router.get("/drives/{drive_id}/items", response_model=list[Need])
async def get_drive_items(drive_id: int):
    """A drive's general needs with remaining counts"""
    needs = need_db.drive_items(drive_id)
    if needs is None:
        raise HTTPException(status_code=404, detail="Drive not found")
    return needs
