# storefront/core/config.py

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Supabase (auth + PostgREST). Both are required: the app refuses to start without them.
    SUPABASE_URL: str
    SUPABASE_SERVICE_KEY: str
    SUPABASE_TIMEOUT_SECONDS: float = 20.0

    # Redis: guest carts and catalog cache
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0

    # Cookies
    ACCESS_TOKEN_COOKIE: str = "sb-access-token"
    REFRESH_TOKEN_COOKIE: str = "sb-refresh-token"
    GUEST_COOKIE: str = "damanhour_guest"

    # Cart
    CART_STORAGE_KEY: str = "damanhour_cart"
    GUEST_CART_TTL_SECONDS: int = 60 * 60 * 24 * 30  # 30 days

    CATALOG_CACHE_TTL_SECONDS: int = 600
    DEFAULT_LANGUAGE: str = "ar"

    # Level of the storefront.* loggers; third-party loggers stay at WARNING
    LOG_LEVEL: str = "INFO"
    # Supabase client logger (request failures, "no rows" at DEBUG); defaults to LOG_LEVEL
    SUPABASE_LOG_LEVEL: Optional[str] = None

    FRONTEND_URL: Optional[str] = None
    CORS_ORIGINS_STR: str = Field(
        default="http://localhost,http://localhost:3000,http://localhost:5173,http://localhost:8080",
        alias="CORS_ORIGINS",
    )

    @property
    def CORS_ORIGINS(self) -> List[str]:
        origins = [o.strip() for o in self.CORS_ORIGINS_STR.split(",") if o.strip()]
        if self.FRONTEND_URL:
            origins.append(self.FRONTEND_URL)
        return origins

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

settings = Settings()
