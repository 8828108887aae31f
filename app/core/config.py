"""Configuration de l'application"""
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Paramètres de configuration"""

    # Application
    APP_NAME: str = "PropNest"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS - URLs autorisées
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:3000"

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # Redis (cache optionnel : sans URL, lecture directe en base)
    REDIS_URL: Optional[str] = None
    PROPERTY_CACHE_TTL: int = 300
    LIST_CACHE_TTL: int = 300

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    BILLING_CURRENCY: str = "inr"

    # Service NLP externe (sans URL, parsing local uniquement)
    AI_SERVICE_URL: Optional[str] = None
    AI_API_KEY: Optional[str] = None
    AI_TIMEOUT_SECONDS: float = 10.0

    @property
    def cors_origins_list(self) -> List[str]:
        """Transforme CORS_ORIGINS en liste"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Retourne les paramètres (lus une seule fois)"""
    return Settings()
