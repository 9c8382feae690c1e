# Storefront Routes

from .cart import router as cart_router
from .needs import router as needs_router
from .checkout import router as checkout_router

__all__ = ["cart_router", "needs_router", "checkout_router"]
