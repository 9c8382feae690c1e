"""
Mock Cart Backend Application

Simulated donation cart API: guest carts across Shopify and Amazon stores,
child and drive needs, payment intents and orders.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import cart_router, items_router, checkout_router

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Mock cart backend starting up...")
    yield
    logger.info("Mock cart backend shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Mock GiftDrive Cart Backend",
    description="Simulated donation cart API for storefront development and tests",
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
)

# Include API routers
app.include_router(cart_router)
app.include_router(items_router)
app.include_router(checkout_router)


@app.get("/")
async def home():
    """API index"""
    return {
        "message": "Mock GiftDrive Cart API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "orders": "/api/orders",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mock-cart-backend"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "giftdrive.mock_backend.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
    )
