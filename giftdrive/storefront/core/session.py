"""Session management for donor storefront visits"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .config import settings
from .notifications import NotificationFeed
from ..services.backend_client import BackendClient
from ..services.cart_store import CartHandle
from ..services.checkout import CheckoutOrchestrator
from ..services.needs import NeedCatalog
from ..services.payment import PaymentBridge, PaymentProvider, StripePaymentProvider
from ..services.variants import VariantResolver

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], BackendClient]
ProviderFactory = Callable[[], Optional[PaymentProvider]]


def default_client_factory() -> BackendClient:
    return BackendClient(settings.backend_base_url, timeout=settings.request_timeout)


def default_provider_factory() -> Optional[PaymentProvider]:
    return StripePaymentProvider.from_settings(settings)


@dataclass
class DonorSession:
    """Everything one donor's browser tab works against"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    client: BackendClient
    provider: Optional[PaymentProvider] = None
    notifications: NotificationFeed = field(default_factory=NotificationFeed)
    cart: CartHandle = field(init=False)
    variants: VariantResolver = field(init=False)
    needs: NeedCatalog = field(init=False)
    checkout: CheckoutOrchestrator = field(init=False)

    def __post_init__(self):
        self.cart = CartHandle(self.client, self.notifications)
        self.variants = VariantResolver(self.client, self.notifications)
        self.needs = NeedCatalog(self.client, self.cart, self.variants, self.notifications)
        self.checkout = CheckoutOrchestrator(
            self.client,
            self.cart,
            PaymentBridge(self.provider),
            self.notifications,
        )

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    async def close(self) -> None:
        """Release HTTP clients held by this session"""
        await self.client.close()
        close_provider = getattr(self.provider, "close", None)
        if close_provider is not None:
            await close_provider()


class SessionManager:
    """Manages donor sessions"""

    def __init__(
        self,
        client_factory: ClientFactory = default_client_factory,
        provider_factory: ProviderFactory = default_provider_factory,
    ):
        self.sessions: dict[str, DonorSession] = {}
        self._client_factory = client_factory
        self._provider_factory = provider_factory

    def create_session(self) -> DonorSession:
        """Create a new session with its own cart cookie jar"""
        now = datetime.utcnow()
        session = DonorSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            client=self._client_factory(),
            provider=self._provider_factory(),
        )
        self.sessions[session.session_id] = session
        logger.info(f"Created donor session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[DonorSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> DonorSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            session = self.sessions[session_id]
            session.touch()
            return session
        return self.create_session()

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            await self.delete_session(sid)
        return len(old_sessions)

    async def close_all(self) -> None:
        for sid in list(self.sessions):
            await self.delete_session(sid)


# Singleton instance
session_manager = SessionManager()


def get_session_manager() -> SessionManager:
    """Dependency for the session manager"""
    return session_manager
