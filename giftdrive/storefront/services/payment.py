"""
Payment Confirmation Bridge

Hands the client secret and the mounted payment form to the payment
provider and maps the provider's answer onto a PaymentResult.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from ..core.config import Settings
from ..core.errors import ErrorKind

logger = logging.getLogger(__name__)

GENERIC_PAYMENT_ERROR = "An unexpected payment error occurred. Please try again."
DONOR_FACING_ERROR_TYPES = ("card_error", "validation_error")


@dataclass
class PaymentElement:
    """Card entry element as reported by the payment form"""
    payment_method_id: Optional[str] = None
    ready: bool = False


@dataclass
class PaymentForm:
    """Mounted payment form; ``payment_element`` is None until it renders"""
    payment_element: Optional[PaymentElement] = None
    mounted: bool = True


@dataclass
class ProviderError:
    type: str
    message: str = ""
    code: Optional[str] = None


@dataclass
class ProviderResponse:
    """Answer to a confirmation: an intent status or an error"""
    status: Optional[str] = None
    intent_id: Optional[str] = None
    error: Optional[ProviderError] = None


@dataclass
class PaymentResult:
    success: bool
    transaction_id: Optional[str] = None
    message: Optional[str] = None
    kind: Optional[ErrorKind] = None


class PaymentProvider(Protocol):
    async def confirm_payment(self, client_secret: str, payment_method_id: str) -> ProviderResponse:
        ...


def intent_id_from_secret(client_secret: str) -> str:
    """``pi_123_secret_abc`` -> ``pi_123``"""
    return client_secret.split("_secret_")[0]


class StripePaymentProvider:
    """
    Confirms PaymentIntents through Stripe's REST API with the publishable key.

    Only the client secret ever leaves the backend; the intent id is the
    part of the secret before ``_secret_``.
    """

    def __init__(
        self,
        publishable_key: str,
        api_base: str = "https://api.stripe.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.publishable_key = publishable_key
        self.api_base = api_base.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["StripePaymentProvider"]:
        """None when no publishable key is configured"""
        if not settings.stripe_configured:
            return None
        return cls(
            publishable_key=settings.stripe_publishable_key,
            api_base=settings.stripe_api_base,
            timeout=settings.request_timeout,
        )

    async def close(self) -> None:
        await self._http_client.aclose()

    async def confirm_payment(self, client_secret: str, payment_method_id: str) -> ProviderResponse:
        intent_id = intent_id_from_secret(client_secret)
        url = f"{self.api_base}/v1/payment_intents/{intent_id}/confirm"

        try:
            response = await self._http_client.post(
                url,
                auth=(self.publishable_key, ""),
                data={"payment_method": payment_method_id, "client_secret": client_secret},
            )
        except httpx.TransportError as e:
            logger.error(f"Stripe did not respond for {intent_id}: {e}")
            return ProviderResponse(error=ProviderError(type="api_connection_error", message=str(e)))

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400 or "error" in data:
            error = data.get("error") or {}
            logger.warning(f"Stripe confirmation failed for {intent_id}: {response.status_code} - {error}")
            return ProviderResponse(
                intent_id=intent_id,
                error=ProviderError(
                    type=error.get("type", "api_error"),
                    message=error.get("message", ""),
                    code=error.get("code"),
                ),
            )

        return ProviderResponse(status=data.get("status"), intent_id=data.get("id", intent_id))


class PaymentBridge:
    """Checks form preconditions, confirms, and maps the provider answer"""

    def __init__(self, provider: Optional[PaymentProvider]):
        self.provider = provider

    async def confirm(self, client_secret: str, form: Optional[PaymentForm]) -> PaymentResult:
        if self.provider is None:
            return self._precondition("Payment system (Stripe) not loaded. Please wait or refresh.")
        if form is None or not form.mounted:
            return self._precondition("Payment form elements not loaded. Please wait or refresh.")
        element = form.payment_element
        if element is None:
            return self._precondition("Payment form element is not available. Please wait or refresh.")
        if not element.ready or not element.payment_method_id:
            return self._precondition("Payment form is not ready yet. Please wait.")

        response = await self.provider.confirm_payment(client_secret, element.payment_method_id)
        return self._to_result(response)

    @staticmethod
    def _precondition(message: str) -> PaymentResult:
        return PaymentResult(success=False, message=message, kind=ErrorKind.PRECONDITION)

    @staticmethod
    def _to_result(response: ProviderResponse) -> PaymentResult:
        if response.error is not None:
            if response.error.type in DONOR_FACING_ERROR_TYPES:
                return PaymentResult(
                    success=False,
                    message=response.error.message or "Please check your card details.",
                    kind=ErrorKind.PAYMENT_CARD,
                )
            logger.error(f"Unexpected payment error: {response.error.type} - {response.error.message}")
            return PaymentResult(success=False, message=GENERIC_PAYMENT_ERROR, kind=ErrorKind.PAYMENT_UNEXPECTED)

        if response.status == "succeeded":
            logger.info(f"Payment succeeded: {response.intent_id}")
            return PaymentResult(success=True, transaction_id=response.intent_id)

        return PaymentResult(
            success=False,
            message=f"Payment status: {response.status}",
            kind=ErrorKind.PAYMENT_UNEXPECTED,
        )
