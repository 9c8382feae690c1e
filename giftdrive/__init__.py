"""GiftDrive donation storefront: cart and checkout orchestration"""

__version__ = "1.0.0"
