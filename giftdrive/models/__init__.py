# GiftDrive wire models

from .cart import (
    Marketplace,
    Money,
    Image,
    CartError,
    ShippingMethod,
    Offer,
    CatalogItem,
    ShopifyVariant,
    ProductRef,
    AmazonProduct,
    CartLine,
    ShopifyCartLine,
    AmazonCartLine,
    ShopifyStore,
    AmazonStore,
    Store,
    CartCost,
    BuyerIdentity,
    Cart,
    AddToCartRequest,
    RemoveFromCartRequest,
    UpdateCartItemRequest,
    BuyerIdentityRequest,
)
from .need import Need, NeedRefType, Variant, VariantList, VariantsRequest
from .checkout import (
    StripeIntentRequest,
    StripeIntentResponse,
    ValidationIssue,
    CheckoutValidation,
    FinalizeOrderRequest,
    FinalizedOrder,
)

__all__ = [
    "Marketplace",
    "Money",
    "Image",
    "CartError",
    "ShippingMethod",
    "Offer",
    "CatalogItem",
    "ShopifyVariant",
    "ProductRef",
    "AmazonProduct",
    "CartLine",
    "ShopifyCartLine",
    "AmazonCartLine",
    "ShopifyStore",
    "AmazonStore",
    "Store",
    "CartCost",
    "BuyerIdentity",
    "Cart",
    "AddToCartRequest",
    "RemoveFromCartRequest",
    "UpdateCartItemRequest",
    "BuyerIdentityRequest",
    "Need",
    "NeedRefType",
    "Variant",
    "VariantList",
    "VariantsRequest",
    "StripeIntentRequest",
    "StripeIntentResponse",
    "ValidationIssue",
    "CheckoutValidation",
    "FinalizeOrderRequest",
    "FinalizedOrder",
]
