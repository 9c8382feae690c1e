"""
Marketplace Line-Item Normalizer

Turns Shopify- and Amazon-shaped cart lines into one display model and
builds the cart summary shown next to them. Everything here is pure.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from giftdrive.models import (
    AmazonCartLine,
    AmazonStore,
    Cart,
    CartCost,
    CatalogItem,
    Marketplace,
    Money,
    ShopifyCartLine,
    ShopifyStore,
    Store,
)

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_ITEM = "Unknown Item"
PLACEHOLDER_IMAGE = "/placeholder-image.png"

CURRENCY_SYMBOLS = {"USD": "$", "CAD": "CA$", "EUR": "€", "GBP": "£"}


@dataclass
class LineView:
    """Uniform display model for one cart line"""
    item_id: Optional[str]
    marketplace: Marketplace
    quantity: int
    display_title: str
    display_subline: Optional[str]
    image_url: str
    price: Optional[int] = None
    currency: Optional[str] = None
    source_child_item_id: Optional[int] = None
    source_drive_item_id: Optional[int] = None

    @property
    def price_display(self) -> Optional[str]:
        if self.price is None:
            return None
        return format_currency(self.price, self.currency or "USD")


@dataclass
class StoreView:
    heading: str
    store: str
    marketplace: Marketplace
    lines: list[LineView] = field(default_factory=list)


@dataclass
class CostSummary:
    rows: list[tuple[str, str]] = field(default_factory=list)
    note: Optional[str] = None


@dataclass
class CartView:
    has_items: bool
    stores: list[StoreView]
    summary: CostSummary


def format_currency(value: Optional[int], currency: str = "USD") -> str:
    """Format an amount in the smallest currency unit, e.g. 1050 -> $10.50"""
    if value is None:
        return "N/A"
    amount = value / 100
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{amount:,.2f} {currency.upper()}"
    return f"{symbol}{amount:,.2f}"


def marketplace_for(store: Store) -> Marketplace:
    if isinstance(store, ShopifyStore):
        return Marketplace.SHOPIFY
    if isinstance(store, AmazonStore):
        return Marketplace.AMAZON
    raise TypeError(f"Unsupported store type: {type(store).__name__}")


def _item_data(line: Union[ShopifyCartLine, AmazonCartLine], store: Store) -> Optional[CatalogItem]:
    """Variant for Shopify lines, product for Amazon lines"""
    if isinstance(store, ShopifyStore):
        return line.variant
    if isinstance(store, AmazonStore):
        return line.product
    raise TypeError(f"Unsupported store type: {type(store).__name__}")


def line_item_id(line: Union[ShopifyCartLine, AmazonCartLine], store: Store) -> Optional[str]:
    """Id the cart API uses to address this line"""
    item = _item_data(line, store)
    return item.id if item else None


def line_item_title(line: Union[ShopifyCartLine, AmazonCartLine], store: Store) -> str:
    """Marketplace title of the purchased item, used in availability messages"""
    item = _item_data(line, store)
    if item and item.title:
        return item.title
    return line.giftdrive_base_product_name or UNKNOWN_ITEM


def _base_name(line: Union[ShopifyCartLine, AmazonCartLine], store: Store) -> str:
    if line.giftdrive_base_product_name:
        return line.giftdrive_base_product_name
    # Shopify: parent product title. Amazon: the product itself
    fallback = line.product.title if line.product else None
    return fallback or UNKNOWN_PRODUCT


def _strip_base_name(text: str, base_name: str) -> str:
    fragment = text
    if fragment.startswith(base_name):
        fragment = fragment[len(base_name):]
    fragment = fragment.strip()
    if fragment.startswith("- "):
        fragment = fragment[2:].strip()
    elif fragment == "-":
        fragment = ""
    return fragment


def variant_subline(
    base_name: str,
    variant_details: Optional[str],
    variant_title: Optional[str] = None,
) -> Optional[str]:
    """Variant-specific fragment shown under the title, never equal to it"""
    fragment = None
    if variant_details and variant_details != base_name:
        fragment = _strip_base_name(variant_details, base_name)
    elif variant_title and variant_title != base_name:
        fragment = _strip_base_name(variant_title, base_name)

    if not fragment or fragment == base_name:
        return None
    return fragment


def _price(item: Optional[CatalogItem]) -> Optional[Money]:
    if item is None:
        return None
    if item.price_v2 is not None and item.price_v2.value is not None:
        return item.price_v2
    if item.price is not None and item.price.value is not None:
        return item.price
    return None


def _image_url(line: Union[ShopifyCartLine, AmazonCartLine], store: Store) -> Optional[str]:
    if isinstance(store, ShopifyStore):
        variant = line.variant
        return variant.image.url if variant and variant.image else None
    product = line.product
    return product.images[0].url if product and product.images else None


def normalize_line(
    line: Union[ShopifyCartLine, AmazonCartLine],
    store: Store,
    placeholder: str = PLACEHOLDER_IMAGE,
) -> LineView:
    """Map a marketplace-specific cart line onto the uniform display model"""
    marketplace = marketplace_for(store)
    item = _item_data(line, store)
    title = _base_name(line, store)

    own_title = item.title if isinstance(store, ShopifyStore) and item else None
    subline = variant_subline(title, line.giftdrive_variant_details_text, own_title)

    price = _price(item)
    image = _image_url(line, store) or line.giftdrive_display_photo or placeholder

    return LineView(
        item_id=item.id if item else None,
        marketplace=marketplace,
        quantity=line.quantity,
        display_title=title,
        display_subline=subline,
        image_url=image,
        price=price.value if price else None,
        currency=price.currency if price else None,
        source_child_item_id=line.giftdrive_source_child_item_id,
        source_drive_item_id=line.giftdrive_source_drive_item_id,
    )


def image_fallback(placeholder: str = PLACEHOLDER_IMAGE) -> str:
    """Image to swap in when a line's image fails to load"""
    return placeholder


def store_heading(store: Store) -> str:
    return "Amazon" if store.store == "amazon" else f"Store: {store.store}"


def summarize_cost(cost: Optional[CartCost]) -> CostSummary:
    """Summary rows; a missing value is "not yet computable", never zero"""
    if cost is None:
        return CostSummary(note="Enter address for shipping & tax calculation.")

    summary = CostSummary()
    subtotal = cost.subtotal
    summary.rows.append((
        "Subtotal",
        format_currency(subtotal.value if subtotal else None, subtotal.currency if subtotal else "USD"),
    ))
    if cost.shipping is not None and cost.shipping.value is not None:
        summary.rows.append(("Shipping", format_currency(cost.shipping.value, cost.shipping.currency)))
    if cost.tax is not None and cost.tax.value is not None:
        summary.rows.append(("Tax", format_currency(cost.tax.value, cost.tax.currency)))

    total = cost.total
    if total is not None and total.value is not None:
        label = "Total (Estimated)" if cost.is_estimated else "Total"
        summary.rows.append((label, format_currency(total.value, total.currency)))
    else:
        summary.rows.append(("Total", "Calculating Total..."))
        if cost.is_estimated:
            summary.note = "Final shipping & tax calculated after address entry."
    return summary


def build_cart_view(cart: Optional[Cart], placeholder: str = PLACEHOLDER_IMAGE) -> CartView:
    """Group normalized lines per store alongside the cost summary"""
    if cart is None:
        return CartView(has_items=False, stores=[], summary=summarize_cost(None))

    stores = [
        StoreView(
            heading=store_heading(store),
            store=store.store,
            marketplace=marketplace_for(store),
            lines=[normalize_line(line, store, placeholder) for line in store.cart_lines],
        )
        for store in cart.stores
    ]
    return CartView(has_items=cart.has_items, stores=stores, summary=summarize_cost(cart.cost))
