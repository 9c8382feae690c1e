"""Storefront Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "GiftDrive Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Cart / checkout backend
    backend_base_url: str = "http://localhost:8001"
    request_timeout: float = 30.0

    # Stripe (client-side confirmation uses the publishable key)
    stripe_publishable_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com"

    # Display
    placeholder_image: str = "/placeholder-image.png"

    # Sessions
    session_max_age_hours: int = 24

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def stripe_configured(self) -> bool:
        """Check if the payment provider can be loaded"""
        return bool(self.stripe_publishable_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
