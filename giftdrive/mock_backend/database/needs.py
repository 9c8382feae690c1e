"""Mock child and drive needs"""

from typing import Optional

from giftdrive.models import Marketplace, Need, NeedRefType
from ..models import NeedRecord

CHILD_ID = 7
DRIVE_ID = 3

NEEDS: list[NeedRecord] = [
    NeedRecord(
        ref_type=NeedRefType.CHILD_ITEM,
        ref_id=42,
        child_id=CHILD_ID,
        drive_id=DRIVE_ID,
        needed=2,
        base_item_name="Toy Dump Truck",
        base_item_photo="/static/images/dump-truck.jpg",
        base_item_price=2499,
        base_rye_product_id="B0TOYTRUCK",
        base_marketplace=Marketplace.AMAZON,
        selected_rye_variant_id="B0TOYTRUCK",
        selected_rye_marketplace=Marketplace.AMAZON,
    ),
    NeedRecord(
        ref_type=NeedRefType.CHILD_ITEM,
        ref_id=43,
        child_id=CHILD_ID,
        drive_id=DRIVE_ID,
        needed=1,
        base_item_name="Winter Scarf",
        base_item_price=1899,
        allow_donor_variant_choice=True,
        base_rye_product_id="shop_prod_1",
        base_marketplace=Marketplace.SHOPIFY,
    ),
    NeedRecord(
        ref_type=NeedRefType.CHILD_ITEM,
        ref_id=44,
        child_id=CHILD_ID,
        drive_id=DRIVE_ID,
        needed=1,
        base_item_name="Fleece Blanket",
        base_item_price=2000,
        is_rye_linked=False,
    ),
    NeedRecord(
        ref_type=NeedRefType.CHILD_ITEM,
        ref_id=45,
        child_id=CHILD_ID,
        drive_id=DRIVE_ID,
        needed=3,
        base_item_name="Knit Beanie",
        base_item_price=1250,
        allow_donor_variant_choice=True,
        base_rye_product_id="shop_prod_2",
        base_marketplace=Marketplace.SHOPIFY,
    ),
    NeedRecord(
        ref_type=NeedRefType.DRIVE_ITEM,
        ref_id=101,
        drive_id=DRIVE_ID,
        needed=10,
        base_item_name="Kids Art Kit",
        base_item_photo="/static/images/art-kit.jpg",
        base_item_price=1599,
        base_rye_product_id="B0ARTKIT",
        base_marketplace=Marketplace.AMAZON,
        selected_rye_variant_id="B0ARTKIT",
        selected_rye_marketplace=Marketplace.AMAZON,
    ),
    NeedRecord(
        ref_type=NeedRefType.DRIVE_ITEM,
        ref_id=102,
        drive_id=DRIVE_ID,
        needed=4,
        base_item_name="Winter Scarf",
        base_item_price=1899,
        variant_display_name="Winter Scarf - Red Scarf",
        variant_display_photo="/static/images/scarf-red.jpg",
        variant_display_price=1899,
        base_rye_product_id="shop_prod_1",
        base_marketplace=Marketplace.SHOPIFY,
        selected_rye_variant_id="shop_variant_9",
        selected_rye_marketplace=Marketplace.SHOPIFY,
    ),
]


class NeedDatabase:
    """In-memory needs with purchase counts"""

    def __init__(self):
        self.records: dict[tuple[NeedRefType, int], NeedRecord] = {}
        self.reset()

    def reset(self) -> None:
        self.records = {(r.ref_type, r.ref_id): r.model_copy() for r in NEEDS}

    def get(self, ref_type: NeedRefType, ref_id: int) -> Optional[NeedRecord]:
        return self.records.get((ref_type, ref_id))

    def child_items(self, child_id: int) -> Optional[list[Need]]:
        """Needs of one child, None for an unknown child"""
        records = [
            r for r in self.records.values()
            if r.ref_type == NeedRefType.CHILD_ITEM and r.child_id == child_id
        ]
        return [r.to_need() for r in records] if records else None

    def drive_items(self, drive_id: int) -> Optional[list[Need]]:
        """General needs of a drive (child needs are listed per child)"""
        records = [
            r for r in self.records.values()
            if r.ref_type == NeedRefType.DRIVE_ITEM and r.drive_id == drive_id
        ]
        return [r.to_need() for r in records] if records else None

    def record_purchase(self, ref_type: NeedRefType, ref_id: int, quantity: int) -> Optional[NeedRecord]:
        record = self.get(ref_type, ref_id)
        if record:
            record.purchased += quantity
        return record


# Singleton instance
need_db = NeedDatabase()
