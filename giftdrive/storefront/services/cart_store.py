"""
Cart State Store

Holds the donor's cart snapshot. Every mutation is followed by a full
re-fetch instead of a local patch: pricing, availability and remaining
need counts are computed by the backend.
"""

import logging
from typing import Awaitable, Callable, Optional

from giftdrive.models import Cart, Marketplace, NeedRefType
from ..core.errors import BackendAPIError, ErrorKind, Outcome
from ..core.notifications import NotificationFeed
from .backend_client import BackendClient

logger = logging.getLogger(__name__)


class CartHandle:
    """
    Read-only snapshot plus the four cart operations.

    ``loading`` is set while a request is outstanding; mutations issued
    meanwhile are refused, which is how action controls stay disabled.
    """

    def __init__(self, client: BackendClient, notifications: NotificationFeed):
        self._client = client
        self._notifications = notifications
        self._cart: Optional[Cart] = None
        self._loading = False

    @property
    def snapshot(self) -> Optional[Cart]:
        return self._cart

    @property
    def loading(self) -> bool:
        return self._loading

    async def fetch(self) -> Outcome:
        """Load the authoritative cart; keep the previous snapshot on failure"""
        self._loading = True
        try:
            cart = await self._client.get_cart()
        except BackendAPIError as e:
            logger.error(f"Error fetching cart: {e.message}")
            self._notifications.error(f"Could not refresh your cart: {e.message}")
            return Outcome.from_error(e)
        finally:
            self._loading = False

        self._cart = cart
        return Outcome.ok(data=cart)

    async def add(
        self,
        item_id: str,
        marketplace: Marketplace,
        quantity: int,
        need_ref_id: int,
        need_ref_type: NeedRefType,
    ) -> Outcome:
        """Add an item for a need, then re-fetch"""
        return await self._mutate(
            f"add {item_id}",
            lambda: self._client.add_to_cart(item_id, marketplace, quantity, need_ref_id, need_ref_type),
        )

    async def remove(self, item_id: str, marketplace: Marketplace) -> Outcome:
        """Remove a line, then re-fetch"""
        return await self._mutate(
            f"remove {item_id}",
            lambda: self._client.remove_from_cart(item_id, marketplace),
        )

    async def update_quantity(self, item_id: str, marketplace: Marketplace, quantity: int) -> Outcome:
        """Change a line's quantity, then re-fetch"""
        return await self._mutate(
            f"update {item_id} to {quantity}",
            lambda: self._client.update_cart_item(item_id, marketplace, quantity),
        )

    def replace(self, cart: Optional[Cart]) -> None:
        """Install a snapshot the backend returned from another endpoint"""
        self._cart = cart

    def clear(self) -> None:
        self._cart = None

    async def _mutate(self, description: str, call: Callable[[], Awaitable[object]]) -> Outcome:
        if self._loading:
            logger.warning(f"Cart busy, refusing {description}")
            return Outcome.failed("Your cart is still updating. Please wait.", ErrorKind.BUSY)

        self._loading = True
        try:
            await call()
        except BackendAPIError as e:
            logger.error(f"Cart mutation failed ({description}): {e.message}")
            self._notifications.error(e.message)
            return Outcome.from_error(e)
        finally:
            self._loading = False

        logger.debug(f"Cart mutation applied ({description}), re-fetching")
        # A failed re-fetch is reported through the feed; the mutation itself landed
        await self.fetch()
        return Outcome.ok(data=self._cart)


async def set_quantity(
    cart: CartHandle,
    item_id: str,
    marketplace: Marketplace,
    quantity: int,
) -> Outcome:
    """Quantity control policy: anything at or below zero is a removal"""
    if quantity <= 0:
        return await cart.remove(item_id, marketplace)
    return await cart.update_quantity(item_id, marketplace, quantity)
