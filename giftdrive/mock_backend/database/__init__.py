# Database modules

from .products import product_db, ProductDatabase
from .needs import need_db, NeedDatabase
from .carts import cart_db, CartDatabase
from .orders import order_db, OrderDatabase

__all__ = [
    "reset_all",
    "product_db",
    "ProductDatabase",
    "need_db",
    "NeedDatabase",
    "cart_db",
    "CartDatabase",
    "order_db",
    "OrderDatabase",
]


def reset_all() -> None:
    """Restore seed data and drop every cart, intent and order"""
    product_db.reset()
    need_db.reset()
    cart_db.reset()
    order_db.reset()
