"""Tests for the mock cart backend API"""

import pytest

from giftdrive.mock_backend.database import cart_db, need_db
from giftdrive.mock_backend.routes.cart import CART_COOKIE
from giftdrive.models import NeedRefType

ADDRESS = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.org",
    "address1": "12 Analytical Way",
    "city": "Portland",
    "provinceCode": "OR",
    "postalCode": "97201",
    "countryCode": "US",
}


def add_body(item_id="B0TOYTRUCK", marketplace="AMAZON", quantity=1, ref_id=42, ref_type="child_item") -> dict:
    return {
        "ryeIdToAdd": item_id,
        "marketplaceForItem": marketplace,
        "quantity": quantity,
        "originalNeedRefId": ref_id,
        "originalNeedRefType": ref_type,
    }


async def test_health(backend_http):
    response = await backend_http.get("/health")
    assert response.json() == {"status": "healthy", "service": "mock-cart-backend"}


async def test_no_cart_without_cookie(backend_http):
    response = await backend_http.get("/api/cart")
    assert response.status_code == 200
    assert response.json() is None


async def test_add_creates_cart_and_sets_cookie(backend_http):
    response = await backend_http.post("/api/cart/add", json=add_body(quantity=2))

    assert response.status_code == 200
    assert CART_COOKIE in response.cookies
    store = response.json()["stores"][0]
    assert store["__typename"] == "AmazonStore"
    assert store["store"] == "amazon"
    line = store["cartLines"][0]
    assert line["quantity"] == 2
    assert line["giftdrive_source_child_item_id"] == 42
    assert line["product"]["price"]["value"] == 2499

    cart = (await backend_http.get("/api/cart")).json()
    assert cart["id"] == response.json()["id"]


async def test_shopify_line_augmentation(backend_http):
    response = await backend_http.post(
        "/api/cart/add",
        json=add_body("shop_variant_9", "SHOPIFY", 1, 43),
    )
    store = response.json()["stores"][0]

    assert store["__typename"] == "ShopifyStore"
    assert store["store"] == "cozy-knits.myshopify.com"
    line = store["cartLines"][0]
    assert line["variant"]["title"] == "Red Scarf"
    assert line["product"]["title"] == "Winter Scarf"
    assert line["giftdrive_base_product_name"] == "Winter Scarf"
    assert line["giftdrive_variant_details_text"] == "Winter Scarf - Red Scarf"


@pytest.mark.parametrize(
    "body, status_code",
    [
        (add_body(ref_type="wishlist_item"), 400),
        (add_body(ref_id=999), 404),
        (add_body(item_id="B0MISSING"), 404),
        (add_body(item_id="shop_variant_10", marketplace="SHOPIFY", ref_id=43), 400),
        (add_body(quantity=3), 400),
    ],
)
async def test_add_rejections(backend_http, body, status_code):
    response = await backend_http.post("/api/cart/add", json=body)
    assert response.status_code == status_code


async def test_need_maps_to_one_line(backend_http):
    await backend_http.post("/api/cart/add", json=add_body())

    again = await backend_http.post("/api/cart/add", json=add_body())
    assert again.status_code == 409

    other_need = await backend_http.post(
        "/api/cart/add",
        json=add_body("shop_variant_9", "SHOPIFY", 1, 102, "drive_item"),
    )
    assert other_need.status_code == 200
    same_item = await backend_http.post(
        "/api/cart/add",
        json=add_body("shop_variant_9", "SHOPIFY", 1, 43),
    )
    assert same_item.status_code == 409


async def test_update_and_remove(backend_http):
    await backend_http.post("/api/cart/add", json=add_body())

    over = await backend_http.post("/api/cart/update", json={"itemId": "B0TOYTRUCK", "marketplace": "AMAZON", "quantity": 5})
    assert over.status_code == 400
    assert "exceeds available stock" in over.json()["detail"]

    updated = await backend_http.post("/api/cart/update", json={"itemId": "B0TOYTRUCK", "marketplace": "AMAZON", "quantity": 2})
    assert updated.json()["stores"][0]["cartLines"][0]["quantity"] == 2

    removed = await backend_http.post("/api/cart/remove", json={"itemId": "B0TOYTRUCK", "marketplace": "AMAZON"})
    assert removed.json()["stores"] == []
    assert removed.json()["cost"] is None

    missing = await backend_http.post("/api/cart/remove", json={"itemId": "B0TOYTRUCK", "marketplace": "AMAZON"})
    assert missing.status_code == 404


async def test_mutations_need_a_cart(backend_http):
    response = await backend_http.post("/api/cart/remove", json={"itemId": "B0TOYTRUCK", "marketplace": "AMAZON"})
    assert response.status_code == 404


async def test_cost_before_and_after_identity(backend_http):
    cart = (await backend_http.post("/api/cart/add", json=add_body(quantity=2))).json()

    offer = cart["stores"][0]["offer"]
    assert offer["errors"][0]["code"] == "INVALID_BUYER_IDENTITY_INFORMATION"
    assert cart["cost"]["isEstimated"] is True
    assert cart["cost"]["total"] is None

    response = await backend_http.post("/api/cart/buyer-identity", json={"cartId": cart["id"], "buyerIdentity": ADDRESS})
    cart = response.json()

    offer = cart["stores"][0]["offer"]
    assert offer["errors"] == []
    assert offer["shippingMethods"][0]["price"]["value"] == 599
    cost = cart["cost"]
    assert [cost[key]["value"] for key in ("subtotal", "shipping", "tax", "total")] == [4998, 599, 437, 6034]
    assert cart["buyerIdentity"]["firstName"] == "Ada"


async def test_free_shipping_over_threshold(backend_http):
    await backend_http.post("/api/cart/add", json=add_body("B0ARTKIT", "AMAZON", 4, 101, "drive_item"))
    cart = (await backend_http.post("/api/cart/buyer-identity", json={"buyerIdentity": ADDRESS})).json()

    assert cart["cost"]["shipping"]["value"] == 0
    assert cart["stores"][0]["offer"]["selectedShippingMethod"]["label"] == "Free Shipping"


async def test_identity_for_another_cart(backend_http):
    await backend_http.post("/api/cart/add", json=add_body())
    response = await backend_http.post("/api/cart/buyer-identity", json={"cartId": "cart_other", "buyerIdentity": ADDRESS})
    assert response.status_code == 404


async def test_validate_checkout(backend_http):
    await backend_http.post("/api/cart/add", json=add_body(quantity=2))

    valid = await backend_http.post("/api/cart/validate-checkout")
    assert valid.status_code == 200
    assert valid.json() == {"isValid": True, "issues": []}

    need_db.record_purchase(NeedRefType.CHILD_ITEM, 42, 1)
    invalid = await backend_http.post("/api/cart/validate-checkout")

    assert invalid.status_code == 400
    issue = invalid.json()["issues"][0]
    assert (issue["itemId"], issue["requested"], issue["available"]) == ("B0TOYTRUCK", 2, 1)


async def test_variants(backend_http):
    response = await backend_http.post(
        "/api/items/fetch-rye-variants-for-product",
        json={"rye_product_id": "shop_prod_2", "marketplace": "shopify"},
    )
    data = response.json()
    assert data["baseProductName"] == "Knit Beanie"
    assert [v["isAvailable"] for v in data["variants"]] == [False, False]

    missing = await backend_http.post(
        "/api/items/fetch-rye-variants-for-product",
        json={"rye_product_id": "nope", "marketplace": "SHOPIFY"},
    )
    assert missing.status_code == 404


async def test_needs_listing(backend_http):
    child = (await backend_http.get("/api/children/7/items")).json()
    assert [need["child_item_id"] for need in child] == [42, 43, 44, 45]
    assert child[0]["remaining"] == 2

    drive = (await backend_http.get("/api/drives/3/items")).json()
    assert [need["drive_item_id"] for need in drive] == [101, 102]

    assert (await backend_http.get("/api/children/999/items")).status_code == 404
    assert (await backend_http.get("/api/drives/999/items")).status_code == 404


@pytest.mark.parametrize("amount", [0, -100])
async def test_intent_requires_positive_amount(backend_http, amount):
    response = await backend_http.post(
        "/api/checkout/create-stripe-intent",
        json={"cartId": "cart_1", "amount": amount, "currency": "usd"},
    )
    assert response.status_code == 400


async def test_finalize_order(backend_http):
    cart = (await backend_http.post("/api/cart/add", json=add_body(quantity=2))).json()
    cart = (await backend_http.post("/api/cart/buyer-identity", json={"buyerIdentity": ADDRESS})).json()
    intent = (await backend_http.post(
        "/api/checkout/create-stripe-intent",
        json={"cartId": cart["id"], "amount": 6034, "currency": "usd"},
    )).json()
    intent_id = intent["clientSecret"].split("_secret_")[0]

    body = {"ryeCartId": cart["id"], "paymentIntentId": intent_id, "amountInCents": 6034, "currency": "USD"}
    wrong_amount = await backend_http.post("/api/orders/finalize-rye-order", json={**body, "amountInCents": 1})
    assert wrong_amount.status_code == 400

    response = await backend_http.post("/api/orders/finalize-rye-order", json=body)

    assert response.status_code == 200
    assert response.json()["orderId"].startswith("ORD-")
    assert need_db.get(NeedRefType.CHILD_ITEM, 42).purchased == 2
    assert cart_db.carts == {}
    assert (await backend_http.get("/api/cart")).json() is None
    # Cart is gone, so the same intent cannot be replayed
    assert (await backend_http.post("/api/orders/finalize-rye-order", json=body)).status_code == 404
