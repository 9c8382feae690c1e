"""Tests for line-item normalization and cart summaries"""

import pytest

from giftdrive.models import Cart, CartCost, Marketplace
from giftdrive.storefront.services.normalizer import (
    PLACEHOLDER_IMAGE,
    build_cart_view,
    format_currency,
    image_fallback,
    normalize_line,
    summarize_cost,
    variant_subline,
)


def shopify_cart(**line_overrides) -> Cart:
    line = {
        "quantity": 1,
        "variant": {
            "id": "shop_variant_9",
            "title": "Red Scarf",
            "priceV2": {"value": 1899, "currency": "USD"},
            "image": {"url": "/img/red.jpg"},
        },
        "product": {"id": "shop_prod_1", "title": "Winter Scarf"},
        "giftdrive_base_product_name": "Winter Scarf",
        "giftdrive_variant_details_text": "Winter Scarf - Red Scarf",
        "giftdrive_source_child_item_id": 43,
    }
    line.update(line_overrides)
    return Cart.model_validate({
        "id": "cart_1",
        "stores": [{"__typename": "ShopifyStore", "store": "cozy-knits.myshopify.com", "cartLines": [line]}],
    })


def amazon_cart(**line_overrides) -> Cart:
    line = {
        "quantity": 2,
        "product": {
            "id": "B0TOYTRUCK",
            "title": "Toy Dump Truck",
            "price": {"value": 2499, "currency": "USD"},
            "images": [{"url": "/img/truck.jpg"}],
        },
        "giftdrive_source_child_item_id": 42,
    }
    line.update(line_overrides)
    return Cart.model_validate({
        "id": "cart_2",
        "stores": [{"__typename": "AmazonStore", "store": "amazon", "cartLines": [line]}],
    })


def first_line(cart: Cart):
    store = cart.stores[0]
    return store.cart_lines[0], store


class TestNormalizeLine:
    def test_shopify_line_uses_variant_data(self):
        line, store = first_line(shopify_cart())
        view = normalize_line(line, store)

        assert view.marketplace == Marketplace.SHOPIFY
        assert view.item_id == "shop_variant_9"
        assert view.display_title == "Winter Scarf"
        assert view.display_subline == "Red Scarf"
        assert view.image_url == "/img/red.jpg"
        assert view.price == 1899
        assert view.price_display == "$18.99"
        assert view.source_child_item_id == 43

    def test_amazon_line_uses_product_data(self):
        line, store = first_line(amazon_cart())
        view = normalize_line(line, store)

        assert view.marketplace == Marketplace.AMAZON
        assert view.item_id == "B0TOYTRUCK"
        assert view.display_title == "Toy Dump Truck"
        assert view.display_subline is None
        assert view.image_url == "/img/truck.jpg"
        assert view.price == 2499
        assert view.quantity == 2

    def test_title_falls_back_to_parent_product_then_unknown(self):
        line, store = first_line(shopify_cart(giftdrive_base_product_name=None))
        assert normalize_line(line, store).display_title == "Winter Scarf"

        line, store = first_line(shopify_cart(giftdrive_base_product_name=None, product=None))
        assert normalize_line(line, store).display_title == "Unknown Product"

    def test_shopify_subline_falls_back_to_variant_title(self):
        line, store = first_line(shopify_cart(giftdrive_variant_details_text=None))
        assert normalize_line(line, store).display_subline == "Red Scarf"

    def test_price_v2_preferred_over_legacy_price(self):
        line, store = first_line(shopify_cart(variant={
            "id": "v1",
            "title": "Red Scarf",
            "priceV2": {"value": 1500},
            "price": {"value": 9999},
        }))
        assert normalize_line(line, store).price == 1500

    def test_missing_price_is_not_zero(self):
        line, store = first_line(amazon_cart(product={"id": "B0X", "title": "Mystery"}))
        view = normalize_line(line, store)
        assert view.price is None
        assert view.price_display is None

    def test_image_falls_back_to_display_photo_then_placeholder(self):
        line, store = first_line(amazon_cart(
            product={"id": "B0X", "title": "Mystery"},
            giftdrive_display_photo="/img/need.jpg",
        ))
        assert normalize_line(line, store).image_url == "/img/need.jpg"

        line, store = first_line(amazon_cart(product={"id": "B0X", "title": "Mystery"}))
        assert normalize_line(line, store).image_url == PLACEHOLDER_IMAGE
        assert image_fallback() == PLACEHOLDER_IMAGE

    def test_normalizing_is_idempotent(self):
        line, store = first_line(shopify_cart())
        assert normalize_line(line, store) == normalize_line(line, store)


@pytest.mark.parametrize(
    "base_name, details, variant_title",
    [
        ("Winter Scarf", "Winter Scarf", None),
        ("Winter Scarf", "Winter Scarf - ", None),
        ("Winter Scarf", "Winter Scarf -", "Winter Scarf"),
        ("Winter Scarf", None, "Winter Scarf"),
        ("Winter Scarf", "Winter Scarf - Winter Scarf", None),
        ("Scarf", "Scarf Scarf", None),
        ("Winter Scarf", "  ", None),
        ("Winter Scarf", None, None),
    ],
)
def test_subline_never_equals_title(base_name, details, variant_title):
    subline = variant_subline(base_name, details, variant_title)
    assert subline != base_name
    assert subline is None or subline.strip()


def test_subline_strips_base_name_and_separator():
    assert variant_subline("Winter Scarf", "Winter Scarf - Red, Large") == "Red, Large"
    assert variant_subline("Winter Scarf", "Red Scarf") == "Red Scarf"


class TestFormatCurrency:
    def test_formats_cents(self):
        assert format_currency(1050) == "$10.50"
        assert format_currency(123456, "usd") == "$1,234.56"
        assert format_currency(0) == "$0.00"

    def test_missing_value(self):
        assert format_currency(None) == "N/A"

    def test_unknown_currency_uses_code(self):
        assert format_currency(500, "JPY") == "5.00 JPY"


class TestSummarizeCost:
    def test_no_cost_prompts_for_address(self):
        summary = summarize_cost(None)
        assert summary.rows == []
        assert summary.note == "Enter address for shipping & tax calculation."

    def test_estimate_without_total(self):
        cost = CartCost.model_validate({"isEstimated": True, "subtotal": {"value": 4998}})
        summary = summarize_cost(cost)
        assert summary.rows == [("Subtotal", "$49.98"), ("Total", "Calculating Total...")]
        assert summary.note == "Final shipping & tax calculated after address entry."

    def test_full_cost_includes_zero_shipping(self):
        cost = CartCost.model_validate({
            "subtotal": {"value": 6000},
            "shipping": {"value": 0},
            "tax": {"value": 525},
            "total": {"value": 6525},
        })
        assert summarize_cost(cost).rows == [
            ("Subtotal", "$60.00"),
            ("Shipping", "$0.00"),
            ("Tax", "$5.25"),
            ("Total", "$65.25"),
        ]

    def test_estimated_total_is_labelled(self):
        cost = CartCost.model_validate({"isEstimated": True, "subtotal": {"value": 100}, "total": {"value": 100}})
        assert summarize_cost(cost).rows[-1] == ("Total (Estimated)", "$1.00")


def test_cart_view_groups_lines_under_store_headings():
    cart = Cart.model_validate({
        "id": "cart_3",
        "stores": [
            shopify_cart().model_dump(by_alias=True)["stores"][0],
            amazon_cart().model_dump(by_alias=True)["stores"][0],
        ],
    })
    view = build_cart_view(cart)

    assert view.has_items
    assert [store.heading for store in view.stores] == ["Store: cozy-knits.myshopify.com", "Amazon"]
    assert [len(store.lines) for store in view.stores] == [1, 1]


def test_cart_view_without_cart():
    view = build_cart_view(None)
    assert not view.has_items
    assert view.stores == []
