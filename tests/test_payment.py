"""Tests for payment confirmation"""

from urllib.parse import parse_qs

import httpx
import pytest

from giftdrive.storefront.core.config import Settings
from giftdrive.storefront.core.errors import ErrorKind
from giftdrive.storefront.services.payment import (
    GENERIC_PAYMENT_ERROR,
    PaymentBridge,
    PaymentElement,
    PaymentForm,
    ProviderError,
    StripePaymentProvider,
    intent_id_from_secret,
)

from .fakes import FakePaymentProvider

SECRET = "pi_3Abc_secret_xyz"


def ready_form() -> PaymentForm:
    return PaymentForm(payment_element=PaymentElement(payment_method_id="pm_card_visa", ready=True))


def test_intent_id_from_secret():
    assert intent_id_from_secret(SECRET) == "pi_3Abc"


class TestPaymentBridge:
    @pytest.mark.parametrize(
        "form, message",
        [
            (None, "Payment form elements not loaded. Please wait or refresh."),
            (PaymentForm(mounted=False), "Payment form elements not loaded. Please wait or refresh."),
            (PaymentForm(), "Payment form element is not available. Please wait or refresh."),
            (PaymentForm(payment_element=PaymentElement(ready=False)), "Payment form is not ready yet. Please wait."),
            (PaymentForm(payment_element=PaymentElement(ready=True)), "Payment form is not ready yet. Please wait."),
        ],
    )
    async def test_form_preconditions(self, form, message):
        provider = FakePaymentProvider()
        result = await PaymentBridge(provider).confirm(SECRET, form)

        assert not result.success
        assert result.kind == ErrorKind.PRECONDITION
        assert result.message == message
        assert provider.calls == []

    async def test_missing_provider(self):
        result = await PaymentBridge(None).confirm(SECRET, ready_form())
        assert result.message == "Payment system (Stripe) not loaded. Please wait or refresh."
        assert result.kind == ErrorKind.PRECONDITION

    async def test_success(self):
        provider = FakePaymentProvider()
        result = await PaymentBridge(provider).confirm(SECRET, ready_form())

        assert result.success
        assert result.transaction_id == "pi_3Abc"
        assert provider.calls == [(SECRET, "pm_card_visa")]

    @pytest.mark.parametrize("error_type", ["card_error", "validation_error"])
    async def test_donor_facing_errors_keep_provider_message(self, error_type):
        provider = FakePaymentProvider(error=ProviderError(type=error_type, message="Your card has expired."))
        result = await PaymentBridge(provider).confirm(SECRET, ready_form())

        assert result.kind == ErrorKind.PAYMENT_CARD
        assert result.message == "Your card has expired."

    async def test_card_error_without_message(self):
        provider = FakePaymentProvider(error=ProviderError(type="card_error"))
        result = await PaymentBridge(provider).confirm(SECRET, ready_form())
        assert result.message == "Please check your card details."

    async def test_other_errors_are_generic(self):
        provider = FakePaymentProvider(error=ProviderError(type="api_error", message="Internal detail"))
        result = await PaymentBridge(provider).confirm(SECRET, ready_form())

        assert result.kind == ErrorKind.PAYMENT_UNEXPECTED
        assert result.message == GENERIC_PAYMENT_ERROR

    @pytest.mark.parametrize("status", ["requires_action", "processing", None])
    async def test_unsuccessful_status(self, status):
        result = await PaymentBridge(FakePaymentProvider(status=status)).confirm(SECRET, ready_form())

        assert not result.success
        assert result.message == f"Payment status: {status}"


class TestStripePaymentProvider:
    async def test_confirms_intent(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "pi_3Abc", "status": "succeeded"})

        provider = StripePaymentProvider("pk_test_123", transport=httpx.MockTransport(handler))
        response = await provider.confirm_payment(SECRET, "pm_card_visa")
        await provider.close()

        assert response.status == "succeeded"
        assert response.intent_id == "pi_3Abc"
        request = seen[0]
        assert request.url.path == "/v1/payment_intents/pi_3Abc/confirm"
        assert request.headers["authorization"].startswith("Basic ")
        assert parse_qs(request.content.decode()) == {
            "payment_method": ["pm_card_visa"],
            "client_secret": [SECRET],
        }

    async def test_declined_card(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(402, json={
                "error": {"type": "card_error", "code": "card_declined", "message": "Your card was declined."},
            })

        provider = StripePaymentProvider("pk_test_123", transport=httpx.MockTransport(handler))
        response = await provider.confirm_payment(SECRET, "pm_card_chargeDeclined")

        assert response.error == ProviderError(type="card_error", message="Your card was declined.", code="card_declined")
        result = PaymentBridge(provider)._to_result(response)
        assert result.kind == ErrorKind.PAYMENT_CARD
        await provider.close()

    async def test_connection_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = StripePaymentProvider("pk_test_123", transport=httpx.MockTransport(handler))
        response = await provider.confirm_payment(SECRET, "pm_card_visa")
        result = await PaymentBridge(provider).confirm(SECRET, ready_form())
        await provider.close()

        assert response.error.type == "api_connection_error"
        assert not result.success
        assert result.kind == ErrorKind.PAYMENT_UNEXPECTED
        assert result.message == GENERIC_PAYMENT_ERROR

    def test_not_configured_without_key(self):
        assert StripePaymentProvider.from_settings(Settings(stripe_publishable_key=None)) is None

    async def test_configured_from_settings(self):
        provider = StripePaymentProvider.from_settings(
            Settings(stripe_publishable_key="pk_test_123", stripe_api_base="https://stripe.test/")
        )
        assert provider.publishable_key == "pk_test_123"
        assert provider.api_base == "https://stripe.test"
        await provider.close()
