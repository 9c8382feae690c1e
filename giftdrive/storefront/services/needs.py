"""
Need-Fulfillment Tracker

Decides, for every donation need on a child or drive page, whether it is
already in the donor's cart and which action state its card shows.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from giftdrive.models import Cart, Marketplace, Need, NeedRefType, VariantList
from ..core.errors import BackendAPIError, ErrorKind, Outcome, PreconditionError
from ..core.notifications import NotificationFeed
from .backend_client import BackendClient
from .cart_store import CartHandle
from .normalizer import format_currency
from .variants import VariantResolver, needs_variant_choice

logger = logging.getLogger(__name__)

DEFAULT_ITEM_IMAGE = "/img/default-item.png"


class NeedState(str, Enum):
    """Card state, listed in evaluation priority"""
    FULFILLED = "fulfilled"
    IN_CART = "in_cart"
    NEEDS_VARIANT_CHOICE = "needs_variant_choice"
    NOT_PURCHASABLE_ONLINE = "not_purchasable_online"
    PURCHASABLE = "purchasable"


STATE_LABELS = {
    NeedState.FULFILLED: "Fulfilled",
    NeedState.IN_CART: "In Cart",
    NeedState.NEEDS_VARIANT_CHOICE: "Select an option",
    NeedState.NOT_PURCHASABLE_ONLINE: "Unavailable Online",
    NeedState.PURCHASABLE: "Add to Cart",
}


def is_need_in_cart(need: Need, cart: Optional[Cart], key_type: NeedRefType) -> bool:
    """True when any cart line points back at this need"""
    ref_id = need.ref_id(key_type)
    if cart is None or ref_id is None:
        return False
    for store in cart.stores:
        for line in store.cart_lines:
            if getattr(line, key_type.line_field) == ref_id:
                return True
    return False


class CartLineIndex:
    """Source-need references of one cart snapshot, built once per page render"""

    def __init__(self, cart: Optional[Cart]):
        self._refs: dict[NeedRefType, set[int]] = {ref_type: set() for ref_type in NeedRefType}
        if cart is None:
            return
        for store in cart.stores:
            for line in store.cart_lines:
                for ref_type in NeedRefType:
                    ref_id = getattr(line, ref_type.line_field)
                    if ref_id is not None:
                        self._refs[ref_type].add(ref_id)

    def contains(self, need: Need, key_type: NeedRefType) -> bool:
        ref_id = need.ref_id(key_type)
        return ref_id is not None and ref_id in self._refs[key_type]


def derive_need_state(
    need: Need,
    in_cart: bool,
    variant_info: Optional[VariantList] = None,
    selected_variant_id: Optional[str] = None,
) -> NeedState:
    if need.is_fulfilled:
        return NeedState.FULFILLED
    if in_cart:
        return NeedState.IN_CART
    if needs_variant_choice(need):
        if variant_info is not None and not variant_info.available:
            return NeedState.NOT_PURCHASABLE_ONLINE
        if not selected_variant_id:
            return NeedState.NEEDS_VARIANT_CHOICE
        return NeedState.PURCHASABLE
    if not need.is_rye_linked:
        return NeedState.NOT_PURCHASABLE_ONLINE
    return NeedState.PURCHASABLE


def can_add_to_cart(state: NeedState, loading: bool = False) -> bool:
    """Add control is enabled only for purchasable needs while nothing is in flight"""
    return state == NeedState.PURCHASABLE and not loading


def clamp_quantity(requested: Optional[int], remaining: int) -> int:
    """Keep a requested quantity within 1..remaining"""
    upper = max(remaining, 1)
    if requested is None:
        return 1
    return min(max(requested, 1), upper)


@dataclass
class NeedView:
    """Display fields of a need card"""
    title: str
    subline: Optional[str]
    image_url: str
    price: Optional[int]

    @property
    def price_display(self) -> Optional[str]:
        return format_currency(self.price) if self.price is not None else None


def need_view(need: Need, placeholder: str = DEFAULT_ITEM_IMAGE) -> NeedView:
    title = need.base_item_name or "Item"
    subline = need.variant_display_name
    if not subline or subline == title:
        subline = None
    price = need.variant_display_price if need.variant_display_price is not None else need.base_item_price
    return NeedView(
        title=title,
        subline=subline,
        image_url=need.variant_display_photo or need.base_item_photo or placeholder,
        price=price,
    )


@dataclass
class PurchaseTarget:
    item_id: str
    marketplace: Marketplace
    display_name: str


def resolve_purchase_target(
    need: Need,
    selected_variant_id: Optional[str] = None,
    variant_info: Optional[VariantList] = None,
) -> PurchaseTarget:
    """Upstream id and marketplace to add for a need; raises before any network call"""
    name = need_view(need).title
    if needs_variant_choice(need):
        if not selected_variant_id:
            raise PreconditionError(f'Please select an option for "{name}".')
        item_id = selected_variant_id
        marketplace = need.base_marketplace
        variant = variant_info.get(selected_variant_id) if variant_info else None
        if variant is not None and variant.title:
            name = variant.title
    else:
        if not need.is_rye_linked:
            raise PreconditionError("This specific item variation cannot be purchased online yet.")
        item_id = need.selected_rye_variant_id or need.base_rye_product_id
        marketplace = need.selected_rye_marketplace or need.base_marketplace
        name = need.variant_display_name or name

    if not item_id or marketplace is None:
        raise PreconditionError(f"Cannot add {name} to cart: Product identifier or marketplace missing.")
    return PurchaseTarget(item_id=item_id, marketplace=marketplace, display_name=name)


@dataclass
class NeedCard:
    """Need plus everything its card renders"""
    need: Need
    key_type: NeedRefType
    view: NeedView
    state: NeedState
    can_add: bool
    variants: Optional[VariantList] = None
    selected_variant_id: Optional[str] = None
    loading_variants: bool = False

    @property
    def label(self) -> str:
        return STATE_LABELS[self.state]


class NeedCatalog:
    """
    Needs of the page the donor is viewing.

    Remaining counts are never adjusted locally: after an add the list is
    fetched again from the backend.
    """

    def __init__(
        self,
        client: BackendClient,
        cart: CartHandle,
        variants: VariantResolver,
        notifications: NotificationFeed,
    ):
        self._client = client
        self._cart = cart
        self._variants = variants
        self._notifications = notifications
        self._needs: list[Need] = []
        self._key_type: Optional[NeedRefType] = None
        self._source_id: Optional[int] = None
        self._adding: set[int] = set()

    @property
    def needs(self) -> list[Need]:
        return list(self._needs)

    @property
    def key_type(self) -> Optional[NeedRefType]:
        return self._key_type

    async def load_child_needs(self, child_id: int) -> Outcome:
        """Load a child's needs; cards address them by child item id"""
        return await self._load(NeedRefType.CHILD_ITEM, child_id)

    async def load_drive_needs(self, drive_id: int) -> Outcome:
        """Load a drive's general needs; cards address them by drive item id"""
        return await self._load(NeedRefType.DRIVE_ITEM, drive_id)

    async def reload(self) -> Outcome:
        if self._key_type is None or self._source_id is None:
            return Outcome.failed("No page loaded.", ErrorKind.PRECONDITION)
        return await self._load(self._key_type, self._source_id)

    async def _load(self, key_type: NeedRefType, source_id: int) -> Outcome:
        try:
            if key_type == NeedRefType.CHILD_ITEM:
                needs = await self._client.get_child_items(source_id)
            else:
                needs = await self._client.get_drive_items(source_id)
        except BackendAPIError as e:
            logger.error(f"Error loading needs for {key_type.value} source {source_id}: {e.message}")
            self._notifications.error(f"Could not load items: {e.message}")
            return Outcome.from_error(e)

        self._needs = needs
        self._key_type = key_type
        self._source_id = source_id
        return Outcome.ok(data=needs)

    async def resolve_variants(self) -> list[Outcome]:
        """Fetch options for every donor-choice need on the page"""
        if self._key_type is None:
            return []
        pending = [
            self._variants.fetch_variants(need, self._key_type)
            for need in self._needs
            if needs_variant_choice(need) and not need.is_fulfilled
        ]
        return list(await asyncio.gather(*pending))

    def find(self, ref_id: int) -> Optional[Need]:
        if self._key_type is None:
            return None
        return next((n for n in self._needs if n.ref_id(self._key_type) == ref_id), None)

    def cards(self) -> list[NeedCard]:
        """Derive every card against the current cart snapshot"""
        if self._key_type is None:
            return []
        index = CartLineIndex(self._cart.snapshot)
        cards = []
        for need in self._needs:
            cards.append(self._card(need, index))
        return cards

    def _card(self, need: Need, index: CartLineIndex) -> NeedCard:
        key_type = self._key_type
        info = self._variants.info(need, key_type)
        selected = self._variants.selected(need, key_type)
        state = derive_need_state(need, index.contains(need, key_type), info, selected)
        loading = (
            self._cart.loading
            or self._variants.is_loading(need, key_type)
            or need.ref_id(key_type) in self._adding
        )
        return NeedCard(
            need=need,
            key_type=key_type,
            view=need_view(need),
            state=state,
            can_add=can_add_to_cart(state, loading),
            variants=info,
            selected_variant_id=selected,
            loading_variants=self._variants.is_loading(need, key_type),
        )

    async def add_to_cart(self, need: Need, quantity: int = 1) -> Outcome:
        """Add the need's resolved item to the cart, then refresh remaining counts"""
        key_type = self._key_type
        if key_type is None:
            return Outcome.failed("No page loaded.", ErrorKind.PRECONDITION)

        ref_id = need.ref_id(key_type)
        card = self._card(need, CartLineIndex(self._cart.snapshot))
        if card.state != NeedState.PURCHASABLE:
            return Outcome.failed(f"{card.view.title}: {card.label}", ErrorKind.PRECONDITION)
        if ref_id in self._adding or self._cart.loading:
            return Outcome.failed("Your cart is still updating. Please wait.", ErrorKind.BUSY)

        try:
            target = resolve_purchase_target(need, card.selected_variant_id, card.variants)
        except PreconditionError as e:
            self._notifications.error(e.message)
            return Outcome.from_error(e)

        quantity = clamp_quantity(quantity, need.remaining)
        self._adding.add(ref_id)
        try:
            outcome = await self._cart.add(target.item_id, target.marketplace, quantity, ref_id, key_type)
        finally:
            self._adding.discard(ref_id)

        if not outcome.success:
            return outcome

        self._notifications.success(f"{target.display_name} (Qty: {quantity}) added to cart!")
        await self.reload()
        return Outcome.ok(message=f"{target.display_name} added to cart", data=outcome.data)
