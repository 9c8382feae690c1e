"""Tests for the cart backend client"""

import json

import httpx
import pytest

from giftdrive.models import AmazonStore, BuyerIdentity, Marketplace, NeedRefType, ShopifyStore
from giftdrive.storefront.core.errors import BackendAPIError, ErrorKind
from giftdrive.storefront.services.backend_client import BackendClient
from giftdrive.storefront.services.normalizer import marketplace_for


def client_for(handler) -> BackendClient:
    return BackendClient("http://backend/", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"error": "Cart is empty"}, "Cart is empty"),
        ({"detail": "Child not found"}, "Child not found"),
        ({"message": "Slow down"}, "Slow down"),
        ({"detail": [{"loc": ["body"], "msg": "field required"}]}, "Request failed (422)"),
    ],
)
async def test_error_message_extraction(body, expected):
    client = client_for(lambda request: httpx.Response(422, json=body))

    with pytest.raises(BackendAPIError) as exc_info:
        await client.get_cart()

    assert exc_info.value.message == expected
    assert exc_info.value.status_code == 422
    assert exc_info.value.error_code == "HTTP_422"
    assert exc_info.value.kind == ErrorKind.TRANSIENT


async def test_unreachable_backend():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendAPIError) as exc_info:
        await client_for(handler).get_cart()

    assert exc_info.value.status_code == 504
    assert exc_info.value.error_code == "BACKEND_TIMEOUT"


@pytest.mark.parametrize("response", [httpx.Response(200, content=b"null"), httpx.Response(200)])
async def test_no_cart(response):
    assert await client_for(lambda request: response).get_cart() is None


async def test_cart_parsing_uses_store_typename():
    payload = {
        "id": "cart_1",
        "stores": [{
            "__typename": "AmazonStore",
            "store": "amazon",
            "cartLines": [{"quantity": 1, "product": {"id": "B0ARTKIT", "title": "Kids Art Kit", "images": None}}],
            "offer": None,
        }],
        "cost": {"isEstimated": True, "subtotal": {"value": 1599, "currency": "USD"}, "total": None},
    }
    cart = await client_for(lambda request: httpx.Response(200, json=payload)).get_cart()

    assert isinstance(cart.stores[0], AmazonStore)
    assert cart.stores[0].cart_lines[0].product.images == []
    assert cart.total is None
    assert cart.has_items


@pytest.mark.parametrize("tag", [{}, {"__typename": "WalmartStore"}, {"__typename": None}])
async def test_stores_not_tagged_shopify_parse_as_amazon(tag):
    store = {"store": "amazon", "cartLines": [{"quantity": 1, "product": {"id": "B0ARTKIT", "title": "Kids Art Kit"}}]}
    payload = {"id": "cart_1", "stores": [{**store, **tag}]}

    cart = await client_for(lambda request: httpx.Response(200, json=payload)).get_cart()

    assert isinstance(cart.stores[0], AmazonStore)
    assert marketplace_for(cart.stores[0]) == Marketplace.AMAZON
    assert cart.stores[0].cart_lines[0].product.title == "Kids Art Kit"


async def test_shopify_tag_selects_shopify_store():
    payload = {"id": "cart_1", "stores": [{"__typename": "ShopifyStore", "store": "cozy-knits.myshopify.com"}]}
    cart = await client_for(lambda request: httpx.Response(200, json=payload)).get_cart()

    assert isinstance(cart.stores[0], ShopifyStore)


async def test_malformed_cart_is_a_backend_error():
    payload = {"id": "cart_1", "stores": [{"cartLines": [{"quantity": "lots"}]}]}

    with pytest.raises(BackendAPIError, match="Unexpected response from the cart service."):
        await client_for(lambda request: httpx.Response(200, json=payload)).get_cart()


async def test_requests_use_wire_names():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "cart_1", "stores": []})

    client = client_for(handler)
    await client.update_cart_item("shop_variant_9", Marketplace.SHOPIFY, 3)
    await client.add_to_cart("B0ARTKIT", Marketplace.AMAZON, 1, 101, NeedRefType.DRIVE_ITEM)

    assert str(seen[0].url) == "http://backend/api/cart/update"
    assert json.loads(seen[0].content) == {"itemId": "shop_variant_9", "marketplace": "SHOPIFY", "quantity": 3}
    assert json.loads(seen[1].content)["originalNeedRefType"] == "drive_item"


async def test_invalid_checkout_is_returned_not_raised():
    body = {
        "isValid": False,
        "issues": [{"itemId": "B0TOYTRUCK", "itemName": "Toy Dump Truck", "error": "Too many", "requested": 2, "available": 1}],
    }
    validation = await client_for(lambda request: httpx.Response(400, json=body)).validate_checkout()

    assert not validation.is_valid
    assert validation.issues[0].item_name == "Toy Dump Truck"
    assert validation.issues[0].available == 1


async def test_other_validation_errors_raise():
    client = client_for(lambda request: httpx.Response(404, json={"error": "No active cart found for validation."}))
    with pytest.raises(BackendAPIError, match="No active cart"):
        await client.validate_checkout()


async def test_intent_without_client_secret():
    client = client_for(lambda request: httpx.Response(200, json={}))
    with pytest.raises(BackendAPIError, match="Client secret not received"):
        await client.create_stripe_intent("cart_1", 6034, "USD")


async def test_intent_currency_is_lowercased():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"clientSecret": "pi_1_secret_2"})

    secret = await client_for(handler).create_stripe_intent("cart_1", 6034, "USD")

    assert secret == "pi_1_secret_2"
    assert seen == [{"cartId": "cart_1", "amount": 6034, "currency": "usd"}]


async def test_missing_identity_response():
    client = client_for(lambda request: httpx.Response(200, json=None))
    with pytest.raises(BackendAPIError, match="Updated cart was not returned"):
        await client.update_buyer_identity("cart_1", BuyerIdentity())


async def test_child_items(backend_client):
    needs = await backend_client.get_child_items(7)
    assert {need.child_item_id for need in needs} == {42, 43, 44, 45}
    assert all(need.child_id == 7 for need in needs)
