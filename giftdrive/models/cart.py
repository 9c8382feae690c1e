"""Cart models shared by the storefront and the mock backend

Field names follow Python conventions; aliases carry the camelCase names the
cart API speaks on the wire.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Discriminator, Field, Tag, model_validator


class Marketplace(str, Enum):
    """Upstream marketplace backing a store"""
    SHOPIFY = "SHOPIFY"
    AMAZON = "AMAZON"


class WireModel(BaseModel):
    """Base for payloads exchanged with the cart API"""

    class Config:
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # The API sends explicit nulls for absent lists and objects
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Money(WireModel):
    """Amount in the smallest currency unit (cents)"""
    value: Optional[int] = None
    currency: str = "USD"
    display_value: Optional[str] = Field(default=None, alias="displayValue")


class Image(WireModel):
    url: Optional[str] = None


class CartError(WireModel):
    """Marketplace-reported problem"""
    code: str = "UNKNOWN"
    message: str = ""


class ShippingMethod(WireModel):
    id: str
    label: str = ""
    price: Optional[Money] = None


class Offer(WireModel):
    """Shipping quote and availability for one store"""
    shipping_methods: list[ShippingMethod] = Field(default_factory=list, alias="shippingMethods")
    selected_shipping_method: Optional[ShippingMethod] = Field(default=None, alias="selectedShippingMethod")
    errors: list[CartError] = Field(default_factory=list)
    not_available_ids: list[str] = Field(default_factory=list, alias="notAvailableIds")


class CatalogItem(WireModel):
    """Fields common to Shopify variants and Amazon products"""
    id: Optional[str] = None
    title: Optional[str] = None
    is_available: bool = Field(default=True, alias="isAvailable")
    price_v2: Optional[Money] = Field(default=None, alias="priceV2")
    price: Optional[Money] = None


class ShopifyVariant(CatalogItem):
    image: Optional[Image] = None


class ProductRef(WireModel):
    """Parent product of a Shopify variant, used for display grouping"""
    id: Optional[str] = None
    title: Optional[str] = None


class AmazonProduct(CatalogItem):
    images: list[Image] = Field(default_factory=list)


class CartLine(WireModel):
    """One purchasable unit plus the donation need it came from"""
    quantity: int = Field(default=0, ge=0)
    giftdrive_base_product_name: Optional[str] = None
    giftdrive_variant_details_text: Optional[str] = None
    giftdrive_display_photo: Optional[str] = None
    giftdrive_display_price: Optional[int] = None
    giftdrive_source_child_item_id: Optional[int] = None
    giftdrive_source_drive_item_id: Optional[int] = None


class ShopifyCartLine(CartLine):
    variant: Optional[ShopifyVariant] = None
    product: Optional[ProductRef] = None


class AmazonCartLine(CartLine):
    product: Optional[AmazonProduct] = None


class StoreBase(WireModel):
    store: str = ""
    errors: list[CartError] = Field(default_factory=list)
    offer: Optional[Offer] = None
    is_submitted: bool = Field(default=False, alias="isSubmitted")
    order_id: Optional[str] = Field(default=None, alias="orderId")

    @property
    def all_errors(self) -> list[CartError]:
        """Store-level errors followed by offer errors"""
        offer_errors = self.offer.errors if self.offer else []
        return [*self.errors, *offer_errors]


class ShopifyStore(StoreBase):
    typename: Literal["ShopifyStore"] = Field(default="ShopifyStore", alias="__typename")
    cart_lines: list[ShopifyCartLine] = Field(default_factory=list, alias="cartLines")


class AmazonStore(StoreBase):
    # Any store not tagged as Shopify is treated as Amazon
    typename: str = Field(default="AmazonStore", alias="__typename")
    cart_lines: list[AmazonCartLine] = Field(default_factory=list, alias="cartLines")


def _store_kind(value) -> str:
    if isinstance(value, dict):
        typename = value.get("__typename", value.get("typename"))
    else:
        typename = getattr(value, "typename", None)
    return "ShopifyStore" if typename == "ShopifyStore" else "AmazonStore"


Store = Annotated[
    Union[Annotated[ShopifyStore, Tag("ShopifyStore")], Annotated[AmazonStore, Tag("AmazonStore")]],
    Discriminator(_store_kind),
]


class CartCost(WireModel):
    """Pricing breakdown; fields stay None until they can be computed"""
    is_estimated: bool = Field(default=False, alias="isEstimated")
    subtotal: Optional[Money] = None
    shipping: Optional[Money] = None
    tax: Optional[Money] = None
    total: Optional[Money] = None


class BuyerIdentity(WireModel):
    """Donor name, address and contact details"""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    phone: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    province_code: str = Field(default="", alias="provinceCode")
    postal_code: str = Field(default="", alias="postalCode")
    country_code: str = Field(default="US", alias="countryCode")

    def sanitized(self) -> "BuyerIdentity":
        """Copy with surrounding whitespace trimmed from every field"""
        return self.model_copy(
            update={name: value.strip() for name, value in self.model_dump().items()}
        )


class Cart(WireModel):
    """Aggregate root of the checkout flow"""
    id: Optional[str] = None
    stores: list[Store] = Field(default_factory=list)
    cost: Optional[CartCost] = None
    buyer_identity: Optional[BuyerIdentity] = Field(default=None, alias="buyerIdentity")

    @property
    def has_items(self) -> bool:
        return any(store.cart_lines for store in self.stores)

    @property
    def total(self) -> Optional[Money]:
        return self.cost.total if self.cost else None


# ==================== Request bodies ====================


class AddToCartRequest(WireModel):
    rye_id_to_add: str = Field(alias="ryeIdToAdd")
    marketplace_for_item: Marketplace = Field(alias="marketplaceForItem")
    quantity: int = Field(default=1, gt=0)
    original_need_ref_id: int = Field(alias="originalNeedRefId", gt=0)
    original_need_ref_type: str = Field(alias="originalNeedRefType")


class RemoveFromCartRequest(WireModel):
    item_id: str = Field(alias="itemId")
    marketplace: Marketplace


class UpdateCartItemRequest(WireModel):
    item_id: str = Field(alias="itemId")
    marketplace: Marketplace
    quantity: int = Field(ge=0)


class BuyerIdentityRequest(WireModel):
    cart_id: Optional[str] = Field(default=None, alias="cartId")
    buyer_identity: BuyerIdentity = Field(alias="buyerIdentity")
