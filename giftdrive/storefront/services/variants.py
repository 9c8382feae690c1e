"""
Variant Resolution

Loads the purchasable options of donor-choice needs and tracks which one
the donor picked. State is keyed per need so several cards can resolve
independently.
"""

import logging
from typing import Optional

from giftdrive.models import Need, NeedRefType, Variant, VariantList
from ..core.errors import BackendAPIError, Outcome, PreconditionError
from ..core.notifications import NotificationFeed
from .backend_client import BackendClient

logger = logging.getLogger(__name__)

NeedKey = tuple[NeedRefType, int]


def need_key(need: Need, key_type: NeedRefType) -> NeedKey:
    ref_id = need.ref_id(key_type)
    if ref_id is None:
        raise PreconditionError(f"Need has no {key_type.need_field}.")
    return key_type, ref_id


def needs_variant_choice(need: Need) -> bool:
    """Donor picks the variant and the admin did not preset one"""
    return need.allow_donor_variant_choice and not need.has_preset_variant


class VariantResolver:
    """Per-need variant info, selection and in-flight tracking"""

    def __init__(self, client: BackendClient, notifications: NotificationFeed):
        self._client = client
        self._notifications = notifications
        self._info: dict[NeedKey, VariantList] = {}
        self._selected: dict[NeedKey, str] = {}
        self._pending: set[NeedKey] = set()

    def info(self, need: Need, key_type: NeedRefType) -> Optional[VariantList]:
        return self._info.get(need_key(need, key_type))

    def selected(self, need: Need, key_type: NeedRefType) -> Optional[str]:
        return self._selected.get(need_key(need, key_type))

    def is_loading(self, need: Need, key_type: NeedRefType) -> bool:
        return need_key(need, key_type) in self._pending

    async def fetch_variants(self, need: Need, key_type: NeedRefType) -> Outcome:
        """
        Load variants for a donor-choice need.

        Skipped while a fetch for the same need is running or once info
        exists. The first available variant is selected automatically.
        """
        key = need_key(need, key_type)

        if not needs_variant_choice(need) or not need.base_rye_product_id or not need.base_marketplace:
            return Outcome.ok(message="Variant choice not required")
        if key in self._pending:
            return Outcome.ok(message="Variant fetch already in progress")
        if key in self._info:
            return Outcome.ok(data=self._info[key])

        self._pending.add(key)
        try:
            variants = await self._client.fetch_variants(need.base_rye_product_id, need.base_marketplace)
        except BackendAPIError as e:
            # Nothing cached, so the next render can try again
            logger.error(f"Error fetching variants for {need.base_rye_product_id}: {e.message}")
            self._notifications.error("Could not load options.")
            return Outcome.from_error(e)
        finally:
            self._pending.discard(key)

        self._info[key] = variants
        available = variants.available
        if available and key not in self._selected:
            self._selected[key] = available[0].id

        logger.info(f"Loaded {len(variants.variants)} variants ({len(available)} available) for {key}")
        return Outcome.ok(data=variants)

    def select(self, need: Need, key_type: NeedRefType, variant_id: str) -> Variant:
        """Override the selection with another available variant"""
        key = need_key(need, key_type)
        info = self._info.get(key)
        variant = info.get(variant_id) if info else None
        if variant is None:
            raise PreconditionError("Selected option is not offered for this item.")
        if not variant.is_available:
            raise PreconditionError("Selected option is currently unavailable.")
        self._selected[key] = variant_id
        return variant

    def forget(self, need: Need, key_type: NeedRefType) -> None:
        key = need_key(need, key_type)
        self._info.pop(key, None)
        self._selected.pop(key, None)
