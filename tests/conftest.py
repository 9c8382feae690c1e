"""Shared fixtures: the in-memory cart backend and clients wired to it"""

import httpx
import pytest

from giftdrive.mock_backend.database import reset_all
from giftdrive.models import BuyerIdentity
from giftdrive.storefront.core.notifications import NotificationFeed
from giftdrive.storefront.services.backend_client import BackendClient

from .fakes import BACKEND_URL, FakePaymentProvider, backend_transport


@pytest.fixture(autouse=True)
def reset_backend():
    """Every test starts from the seed catalog and needs"""
    reset_all()
    yield
    reset_all()


@pytest.fixture
async def backend_client():
    client = BackendClient(BACKEND_URL, transport=backend_transport())
    yield client
    await client.close()


@pytest.fixture
async def backend_http():
    """Raw HTTP client against the mock backend"""
    async with httpx.AsyncClient(transport=backend_transport(), base_url=BACKEND_URL) as client:
        yield client


@pytest.fixture
def notifications():
    return NotificationFeed()


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def donor_identity():
    return BuyerIdentity(
        first_name="  Ada ",
        last_name="Lovelace",
        email="ada@example.org",
        phone="555-0100",
        address1="12 Analytical Way",
        city="Portland",
        province_code="OR",
        postal_code="97201",
        country_code="US",
    )
