"""
Storefront Application

Donor-facing API over the donation cart backend: need pages, cart display
and the multi-step checkout.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import cart_router, needs_router, checkout_router
from .routes.deps import SESSION_HEADER
from .core.config import settings
from .core.session import session_manager

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SESSION_SWEEP_INTERVAL = 3600


async def sweep_sessions():
    """Drop idle donor sessions once an hour"""
    while True:
        await asyncio.sleep(SESSION_SWEEP_INTERVAL)
        removed = await session_manager.cleanup_old_sessions(settings.session_max_age_hours)
        if removed:
            logger.info(f"Removed {removed} idle sessions")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Backend URL: {settings.backend_base_url}")
    logger.info(f"Stripe configured: {settings.stripe_configured}")
    sweeper = asyncio.create_task(sweep_sessions())

    yield

    logger.info("Storefront shutting down...")
    sweeper.cancel()
    await session_manager.close_all()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Cart and checkout orchestration for GiftDrive donors",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER],
)

# Include routers
app.include_router(cart_router)
app.include_router(needs_router)
app.include_router(checkout_router)


@app.get("/")
async def home():
    """API index"""
    return {
        "message": "GiftDrive Storefront API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/storefront/cart",
            "needs": "/api/storefront/needs",
            "checkout": "/api/storefront/checkout",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "giftdrive-storefront",
        "backend_configured": bool(settings.backend_base_url),
        "stripe_configured": settings.stripe_configured,
        "active_sessions": len(session_manager.sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "giftdrive.storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
