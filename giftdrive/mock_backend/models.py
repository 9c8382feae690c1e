"""Storage records for the mock cart backend"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from giftdrive.models import BuyerIdentity, Marketplace, Need, NeedRefType


class CatalogEntry(BaseModel):
    """A purchasable marketplace item (Shopify variant or Amazon product)"""
    id: str
    marketplace: Marketplace
    title: str
    price: int  # cents
    currency: str = "USD"
    is_available: bool = True
    image_url: Optional[str] = None
    product_id: str
    product_title: str
    store: str


class NeedRecord(BaseModel):
    """A child or drive need plus its purchase count"""
    ref_type: NeedRefType
    ref_id: int
    child_id: Optional[int] = None
    drive_id: Optional[int] = None
    needed: int
    purchased: int = 0

    base_item_name: str
    base_item_photo: Optional[str] = None
    base_item_price: Optional[int] = None
    variant_display_name: Optional[str] = None
    variant_display_photo: Optional[str] = None
    variant_display_price: Optional[int] = None

    allow_donor_variant_choice: bool = False
    base_rye_product_id: Optional[str] = None
    base_marketplace: Optional[Marketplace] = None
    selected_rye_variant_id: Optional[str] = None
    selected_rye_marketplace: Optional[Marketplace] = None
    is_rye_linked: bool = True

    @property
    def available(self) -> int:
        return max(0, self.needed - self.purchased)

    def to_need(self) -> Need:
        data = self.model_dump(exclude={"ref_type", "ref_id", "purchased"})
        data[self.ref_type.need_field] = self.ref_id
        data["remaining"] = self.available
        return Need.model_validate(data)


class CartLineRecord(BaseModel):
    item_id: str
    marketplace: Marketplace
    quantity: int
    need_ref_type: NeedRefType
    need_ref_id: int


class CartRecord(BaseModel):
    id: str
    token: str
    lines: list[CartLineRecord] = Field(default_factory=list)
    buyer_identity: Optional[BuyerIdentity] = None
    created_at: datetime
    updated_at: datetime


class PaymentIntentRecord(BaseModel):
    id: str
    client_secret: str
    cart_id: str
    amount: int
    currency: str
    finalized: bool = False


class OrderRecord(BaseModel):
    order_id: str
    cart_id: str
    payment_intent_id: str
    amount: int
    currency: str
    lines: list[CartLineRecord]
    created_at: datetime
