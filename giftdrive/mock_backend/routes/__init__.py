# Mock Backend Routes

from .cart import router as cart_router
from .items import router as items_router
from .checkout import router as checkout_router

__all__ = ["cart_router", "items_router", "checkout_router"]
