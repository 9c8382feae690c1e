"""Mock marketplace catalog"""

from typing import Optional

from giftdrive.models import Image, Marketplace, Money, Variant, VariantList
from ..models import CatalogEntry

SHOPIFY_STORE = "cozy-knits.myshopify.com"
AMAZON_STORE = "amazon"

# Mock marketplace catalog, keyed by the id the cart API adds
CATALOG: dict[str, CatalogEntry] = {
    "shop_variant_9": CatalogEntry(
        id="shop_variant_9",
        marketplace=Marketplace.SHOPIFY,
        title="Red Scarf",
        price=1899,
        image_url="/static/images/scarf-red.jpg",
        product_id="shop_prod_1",
        product_title="Winter Scarf",
        store=SHOPIFY_STORE,
    ),
    "shop_variant_10": CatalogEntry(
        id="shop_variant_10",
        marketplace=Marketplace.SHOPIFY,
        title="Blue Scarf",
        price=1899,
        is_available=False,
        image_url="/static/images/scarf-blue.jpg",
        product_id="shop_prod_1",
        product_title="Winter Scarf",
        store=SHOPIFY_STORE,
    ),
    "shop_variant_21": CatalogEntry(
        id="shop_variant_21",
        marketplace=Marketplace.SHOPIFY,
        title="Grey Beanie",
        price=1250,
        is_available=False,
        product_id="shop_prod_2",
        product_title="Knit Beanie",
        store=SHOPIFY_STORE,
    ),
    "shop_variant_22": CatalogEntry(
        id="shop_variant_22",
        marketplace=Marketplace.SHOPIFY,
        title="Navy Beanie",
        price=1250,
        is_available=False,
        product_id="shop_prod_2",
        product_title="Knit Beanie",
        store=SHOPIFY_STORE,
    ),
    "B0TOYTRUCK": CatalogEntry(
        id="B0TOYTRUCK",
        marketplace=Marketplace.AMAZON,
        title="Toy Dump Truck",
        price=2499,
        image_url="/static/images/dump-truck.jpg",
        product_id="B0TOYTRUCK",
        product_title="Toy Dump Truck",
        store=AMAZON_STORE,
    ),
    "B0ARTKIT": CatalogEntry(
        id="B0ARTKIT",
        marketplace=Marketplace.AMAZON,
        title="Kids Art Kit",
        price=1599,
        image_url="/static/images/art-kit.jpg",
        product_id="B0ARTKIT",
        product_title="Kids Art Kit",
        store=AMAZON_STORE,
    ),
}


class ProductDatabase:
    """In-memory marketplace catalog"""

    def __init__(self):
        self.items: dict[str, CatalogEntry] = {}
        self.reset()

    def reset(self) -> None:
        self.items = {key: entry.model_copy() for key, entry in CATALOG.items()}

    def get_item(self, item_id: str, marketplace: Marketplace) -> Optional[CatalogEntry]:
        """Get a purchasable item by id, None when the marketplace does not match"""
        entry = self.items.get(item_id)
        if entry is None or entry.marketplace != marketplace:
            return None
        return entry

    def get_variants(self, product_id: str, marketplace: Marketplace) -> Optional[VariantList]:
        """All variants of a product; Amazon products are their own single variant"""
        entries = [
            entry for entry in self.items.values()
            if entry.product_id == product_id and entry.marketplace == marketplace
        ]
        if not entries:
            return None

        first = entries[0]
        return VariantList(
            base_product_name=first.product_title,
            base_product_image=first.image_url,
            variants=[
                Variant(
                    id=entry.id,
                    title=entry.title,
                    price_v2=Money(value=entry.price, currency=entry.currency),
                    is_available=entry.is_available,
                    image=Image(url=entry.image_url) if entry.image_url else None,
                )
                for entry in entries
            ],
        )

    def set_availability(self, item_id: str, is_available: bool) -> Optional[CatalogEntry]:
        """Simulate an upstream stock change"""
        entry = self.items.get(item_id)
        if entry:
            entry.is_available = is_available
        return entry


# Singleton instance
product_db = ProductDatabase()
