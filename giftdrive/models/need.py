"""Donation need and variant models"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from .cart import Image, Marketplace, Money, WireModel


class NeedRefType(str, Enum):
    """Which kind of need a cart line points back to"""
    CHILD_ITEM = "child_item"
    DRIVE_ITEM = "drive_item"

    @property
    def need_field(self) -> str:
        """Attribute holding the need's own id, e.g. ``child_item_id``"""
        return f"{self.value}_id"

    @property
    def line_field(self) -> str:
        """Cart line attribute referencing the need"""
        return f"giftdrive_source_{self.value}_id"


class Need(WireModel):
    """A donation requirement for a child or a drive

    Prices are in cents. ``remaining`` is computed by the backend and only
    ever re-fetched, never derived locally.
    """
    child_item_id: Optional[int] = None
    drive_item_id: Optional[int] = None
    child_id: Optional[int] = None
    drive_id: Optional[int] = None

    needed: int = 0
    remaining: int = 0

    base_item_name: Optional[str] = None
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
    is_rye_linked: bool = False

    @field_validator("base_marketplace", "selected_rye_marketplace", mode="before")
    @classmethod
    def _upper_marketplace(cls, value):
        return value.upper() if isinstance(value, str) else value

    def ref_id(self, key_type: NeedRefType) -> Optional[int]:
        return getattr(self, key_type.need_field)

    @property
    def is_fulfilled(self) -> bool:
        return self.remaining <= 0

    @property
    def has_preset_variant(self) -> bool:
        return bool(self.selected_rye_variant_id)


class Variant(WireModel):
    """Purchasable option of an upstream product"""
    id: str
    title: str = ""
    price_v2: Optional[Money] = Field(default=None, alias="priceV2")
    price: Optional[Money] = None
    is_available: bool = Field(default=True, alias="isAvailable")
    image: Optional[Image] = None


class VariantList(WireModel):
    base_product_name: Optional[str] = Field(default=None, alias="baseProductName")
    base_product_image: Optional[str] = Field(default=None, alias="baseProductImage")
    variants: list[Variant] = Field(default_factory=list)

    @property
    def available(self) -> list[Variant]:
        return [variant for variant in self.variants if variant.is_available]

    def get(self, variant_id: str) -> Optional[Variant]:
        return next((v for v in self.variants if v.id == variant_id), None)


class VariantsRequest(WireModel):
    rye_product_id: str
    marketplace: Marketplace

    @field_validator("marketplace", mode="before")
    @classmethod
    def _upper_marketplace(cls, value):
        return value.upper() if isinstance(value, str) else value
