"""
Cart Backend Client

HTTP client for the donation cart API (cart, checkout, items, orders).
One client per donor session so the guest cart cookie stays with its owner.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from giftdrive.models import (
    AddToCartRequest,
    BuyerIdentity,
    BuyerIdentityRequest,
    Cart,
    CheckoutValidation,
    FinalizedOrder,
    FinalizeOrderRequest,
    Marketplace,
    Need,
    NeedRefType,
    RemoveFromCartRequest,
    StripeIntentRequest,
    StripeIntentResponse,
    UpdateCartItemRequest,
    VariantList,
    VariantsRequest,
)
from ..core.errors import BackendAPIError

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Client for the donation cart API.

    Every method returns parsed models; failures raise BackendAPIError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Base URL of the cart API
            timeout: Per-request timeout in seconds
            transport: Optional transport (ASGI app or mock) instead of the network
        """
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request and decode the JSON body"""
        url = f"{self.base_url}{path}"

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers={"Accept": "application/json"},
                json=body,
            )
        except httpx.TransportError as e:
            logger.error(f"Backend did not respond: {method} {url} - {e}")
            raise BackendAPIError(
                "The cart service did not respond. Please try again.",
                status_code=504,
                error_code="BACKEND_TIMEOUT",
            ) from e

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            details = self._decode(response)
            raise BackendAPIError(
                self._error_message(details, response.status_code),
                status_code=response.status_code,
                details=details,
            )

        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _parse(model, data):
        """Validate a response body, treating malformed payloads as backend failures"""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected {model.__name__} payload: {e}")
            raise BackendAPIError("Unexpected response from the cart service.", details=data) from e

    @staticmethod
    def _error_message(details: Any, status_code: int) -> str:
        if isinstance(details, dict):
            for key in ("error", "detail", "message"):
                if isinstance(details.get(key), str):
                    return details[key]
        return f"Request failed ({status_code})"

    # ==================== Cart APIs ====================

    async def get_cart(self) -> Optional[Cart]:
        """Get the current session's cart, None when there is none"""
        data = await self._request("GET", "/api/cart")
        return self._parse(Cart, data) if data else None

    async def add_to_cart(
        self,
        item_id: str,
        marketplace: Marketplace,
        quantity: int,
        need_ref_id: int,
        need_ref_type: NeedRefType,
    ) -> Optional[Cart]:
        """Add a marketplace item on behalf of a donation need"""
        request = AddToCartRequest(
            rye_id_to_add=item_id,
            marketplace_for_item=marketplace,
            quantity=quantity,
            original_need_ref_id=need_ref_id,
            original_need_ref_type=need_ref_type.value,
        )
        data = await self._request("POST", "/api/cart/add", body=request.model_dump(mode="json", by_alias=True))
        return self._parse(Cart, data) if data else None

    async def remove_from_cart(self, item_id: str, marketplace: Marketplace) -> Optional[Cart]:
        """Remove item from cart"""
        request = RemoveFromCartRequest(item_id=item_id, marketplace=marketplace)
        data = await self._request("POST", "/api/cart/remove", body=request.model_dump(mode="json", by_alias=True))
        return self._parse(Cart, data) if data else None

    async def update_cart_item(
        self,
        item_id: str,
        marketplace: Marketplace,
        quantity: int,
    ) -> Optional[Cart]:
        """Update item quantity in cart"""
        request = UpdateCartItemRequest(item_id=item_id, marketplace=marketplace, quantity=quantity)
        data = await self._request("POST", "/api/cart/update", body=request.model_dump(mode="json", by_alias=True))
        return self._parse(Cart, data) if data else None

    async def update_buyer_identity(self, cart_id: str, identity: BuyerIdentity) -> Cart:
        """Attach donor identity to the cart; the response carries shipping offers"""
        request = BuyerIdentityRequest(cart_id=cart_id, buyer_identity=identity)
        data = await self._request(
            "POST",
            "/api/cart/buyer-identity",
            body=request.model_dump(mode="json", by_alias=True),
        )
        if not data:
            raise BackendAPIError("Updated cart was not returned after saving your address.")
        return self._parse(Cart, data)

    async def validate_checkout(self) -> CheckoutValidation:
        """Check cart quantities against what each need still requires"""
        try:
            data = await self._request("POST", "/api/cart/validate-checkout")
        except BackendAPIError as e:
            # Invalid carts come back as 400 with the issue list
            if e.status_code == 400 and isinstance(e.details, dict) and "issues" in e.details:
                return self._parse(CheckoutValidation, e.details)
            raise
        return self._parse(CheckoutValidation, data)

    # ==================== Checkout APIs ====================

    async def create_stripe_intent(self, cart_id: str, amount: int, currency: str) -> str:
        """Create a payment intent and return its client secret"""
        request = StripeIntentRequest(cart_id=cart_id, amount=amount, currency=currency.lower())
        data = await self._request(
            "POST",
            "/api/checkout/create-stripe-intent",
            body=request.model_dump(mode="json", by_alias=True),
        )
        if not isinstance(data, dict) or not data.get("clientSecret"):
            raise BackendAPIError("Client secret not received from backend.")
        return self._parse(StripeIntentResponse, data).client_secret

    async def finalize_order(
        self,
        cart_id: str,
        payment_intent_id: str,
        amount: int,
        currency: str,
    ) -> FinalizedOrder:
        """Record the paid order with the backend"""
        request = FinalizeOrderRequest(
            rye_cart_id=cart_id,
            payment_intent_id=payment_intent_id,
            amount_in_cents=amount,
            currency=currency,
        )
        data = await self._request(
            "POST",
            "/api/orders/finalize-rye-order",
            body=request.model_dump(mode="json", by_alias=True),
        )
        return self._parse(FinalizedOrder, data)

    # ==================== Item APIs ====================

    async def fetch_variants(self, product_id: str, marketplace: Marketplace) -> VariantList:
        """Get purchasable variants of an upstream product"""
        request = VariantsRequest(rye_product_id=product_id, marketplace=marketplace)
        data = await self._request(
            "POST",
            "/api/items/fetch-rye-variants-for-product",
            body=request.model_dump(mode="json", by_alias=True),
        )
        return self._parse(VariantList, data or {})

    async def get_child_items(self, child_id: int) -> list[Need]:
        """Get a child's needs with current remaining counts"""
        data = await self._request("GET", f"/api/children/{child_id}/items")
        return [self._parse(Need, item) for item in data or []]

    async def get_drive_items(self, drive_id: int) -> list[Need]:
        """Get a drive's needs with current remaining counts"""
        data = await self._request("GET", f"/api/drives/{drive_id}/items")
        return [self._parse(Need, item) for item in data or []]
