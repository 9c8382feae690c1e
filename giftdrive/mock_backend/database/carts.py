"""Cart storage for the mock cart backend"""

import uuid
from datetime import datetime
from typing import Optional

from giftdrive.models import (
    AmazonCartLine,
    AmazonProduct,
    AmazonStore,
    BuyerIdentity,
    Cart,
    CartCost,
    CartError,
    Image,
    Marketplace,
    Money,
    NeedRefType,
    Offer,
    ProductRef,
    ShippingMethod,
    ShopifyCartLine,
    ShopifyStore,
    ShopifyVariant,
)
from ..models import CartLineRecord, CartRecord, CatalogEntry, NeedRecord
from .needs import need_db
from .products import AMAZON_STORE, product_db

IDENTITY_ERROR = CartError(
    code="INVALID_BUYER_IDENTITY_INFORMATION",
    message="Buyer identity is required to calculate shipping and tax.",
)
REQUIRED_IDENTITY_FIELDS = (
    "first_name", "last_name", "email", "address1", "city", "province_code", "postal_code", "country_code",
)


def identity_complete(identity: Optional[BuyerIdentity]) -> bool:
    return identity is not None and all(getattr(identity, name).strip() for name in REQUIRED_IDENTITY_FIELDS)


class CartDatabase:
    """In-memory guest carts keyed by cookie token"""

    TAX_RATE = 0.0875  # 8.75% tax
    FREE_SHIPPING_THRESHOLD = 5000
    SHIPPING_FLAT_RATE = 599

    def __init__(self):
        self.carts: dict[str, CartRecord] = {}

    def reset(self) -> None:
        self.carts = {}

    def create_cart(self) -> CartRecord:
        """Create a new cart with a fresh guest token"""
        now = datetime.utcnow()
        cart = CartRecord(
            id=f"cart_{uuid.uuid4().hex[:12]}",
            token=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        self.carts[cart.token] = cart
        return cart

    def get_cart(self, token: Optional[str]) -> Optional[CartRecord]:
        """Get a cart by guest token"""
        return self.carts.get(token) if token else None

    def get_or_create_cart(self, token: Optional[str] = None) -> CartRecord:
        """Get existing cart or create new one"""
        return self.get_cart(token) or self.create_cart()

    def find_line(self, cart: CartRecord, item_id: str, marketplace: Marketplace) -> Optional[CartLineRecord]:
        return next(
            (line for line in cart.lines if line.item_id == item_id and line.marketplace == marketplace),
            None,
        )

    def line_for_need(self, cart: CartRecord, ref_type: NeedRefType, ref_id: int) -> Optional[CartLineRecord]:
        """The line already fulfilling a need; a need maps to at most one line"""
        return next(
            (line for line in cart.lines if line.need_ref_type == ref_type and line.need_ref_id == ref_id),
            None,
        )

    def add_line(
        self,
        cart: CartRecord,
        entry: CatalogEntry,
        quantity: int,
        need: NeedRecord,
    ) -> CartRecord:
        """Add an item on behalf of a need"""
        cart.lines.append(CartLineRecord(
            item_id=entry.id,
            marketplace=entry.marketplace,
            quantity=quantity,
            need_ref_type=need.ref_type,
            need_ref_id=need.ref_id,
        ))
        self._touch(cart)
        return cart

    def update_quantity(
        self,
        cart: CartRecord,
        item_id: str,
        marketplace: Marketplace,
        quantity: int,
    ) -> Optional[CartRecord]:
        """Update line quantity; zero or less removes the line"""
        line = self.find_line(cart, item_id, marketplace)
        if not line:
            return None

        if quantity <= 0:
            cart.lines = [l for l in cart.lines if l is not line]
        else:
            line.quantity = quantity

        self._touch(cart)
        return cart

    def remove_line(self, cart: CartRecord, item_id: str, marketplace: Marketplace) -> Optional[CartRecord]:
        """Remove a line from the cart"""
        return self.update_quantity(cart, item_id, marketplace, 0)

    def set_buyer_identity(self, cart: CartRecord, identity: BuyerIdentity) -> CartRecord:
        cart.buyer_identity = identity
        self._touch(cart)
        return cart

    def delete_cart(self, token: str) -> bool:
        """Delete a cart"""
        if token in self.carts:
            del self.carts[token]
            return True
        return False

    def _touch(self, cart: CartRecord) -> None:
        cart.updated_at = datetime.utcnow()

    # ==================== Wire representation ====================

    def build_cart(self, cart: CartRecord) -> Cart:
        """Assemble the marketplace-shaped cart with pricing and availability"""
        shopify: dict[str, ShopifyStore] = {}
        amazon: Optional[AmazonStore] = None
        store_subtotals: dict[str, int] = {}
        subtotal = 0

        for record in cart.lines:
            entry = product_db.get_item(record.item_id, record.marketplace)
            if entry is None:
                continue
            need = need_db.get(record.need_ref_type, record.need_ref_id)
            line_total = entry.price * record.quantity
            subtotal += line_total
            store_subtotals[entry.store] = store_subtotals.get(entry.store, 0) + line_total

            if entry.marketplace == Marketplace.SHOPIFY:
                store = shopify.setdefault(entry.store, ShopifyStore(store=entry.store, offer=Offer()))
                store.cart_lines.append(self._shopify_line(record, entry, need))
            else:
                if amazon is None:
                    amazon = AmazonStore(store=AMAZON_STORE, offer=Offer())
                store = amazon
                store.cart_lines.append(self._amazon_line(record, entry, need))

            if not entry.is_available:
                store.offer.not_available_ids.append(entry.id)

        stores = [*shopify.values(), *([amazon] if amazon else [])]
        cost = self._cost(cart, stores, store_subtotals, subtotal) if stores else None

        return Cart(
            id=cart.id,
            stores=stores,
            cost=cost,
            buyer_identity=cart.buyer_identity,
        )

    def _cost(self, cart: CartRecord, stores: list, store_subtotals: dict[str, int], subtotal: int) -> CartCost:
        """Shipping and tax are only known once a complete address is on the cart"""
        if not identity_complete(cart.buyer_identity):
            for store in stores:
                store.offer.errors.append(IDENTITY_ERROR.model_copy())
            return CartCost(is_estimated=True, subtotal=Money(value=subtotal))

        shipping_total = 0
        for store in stores:
            shipping = 0 if store_subtotals[store.store] >= self.FREE_SHIPPING_THRESHOLD else self.SHIPPING_FLAT_RATE
            shipping_total += shipping
            method = ShippingMethod(
                id=f"{store.store}-standard",
                label="Free Shipping" if shipping == 0 else "Standard Shipping",
                price=Money(value=shipping),
            )
            store.offer.shipping_methods.append(method)
            store.offer.selected_shipping_method = method

        tax = round(subtotal * self.TAX_RATE)
        return CartCost(
            is_estimated=False,
            subtotal=Money(value=subtotal),
            shipping=Money(value=shipping_total),
            tax=Money(value=tax),
            total=Money(value=subtotal + shipping_total + tax),
        )

    @staticmethod
    def _augmentation(record: CartLineRecord, entry: CatalogEntry, need: Optional[NeedRecord]) -> dict:
        base_name = need.base_item_name if need else entry.product_title
        details = need.variant_display_name if need else None
        if not details and entry.title != base_name:
            details = f"{base_name} - {entry.title}"
        photo = None
        if need:
            photo = need.variant_display_photo or need.base_item_photo
        return {
            "quantity": record.quantity,
            "giftdrive_base_product_name": base_name,
            "giftdrive_variant_details_text": details,
            "giftdrive_display_photo": photo,
            "giftdrive_display_price": entry.price,
            f"giftdrive_source_{record.need_ref_type.value}_id": record.need_ref_id,
        }

    def _shopify_line(self, record: CartLineRecord, entry: CatalogEntry, need: Optional[NeedRecord]) -> ShopifyCartLine:
        return ShopifyCartLine(
            variant=ShopifyVariant(
                id=entry.id,
                title=entry.title,
                is_available=entry.is_available,
                price_v2=Money(value=entry.price, currency=entry.currency),
                image=Image(url=entry.image_url) if entry.image_url else None,
            ),
            product=ProductRef(id=entry.product_id, title=entry.product_title),
            **self._augmentation(record, entry, need),
        )

    def _amazon_line(self, record: CartLineRecord, entry: CatalogEntry, need: Optional[NeedRecord]) -> AmazonCartLine:
        return AmazonCartLine(
            product=AmazonProduct(
                id=entry.id,
                title=entry.title,
                is_available=entry.is_available,
                price=Money(value=entry.price, currency=entry.currency),
                images=[Image(url=entry.image_url)] if entry.image_url else [],
            ),
            **self._augmentation(record, entry, need),
        )


# Singleton instance
cart_db = CartDatabase()
