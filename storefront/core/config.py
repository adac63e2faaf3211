from functools import lru_cache
from typing import List, Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "Storefront"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Etsy (read-only keystring, no OAuth)
    ETSY_API_KEY: Optional[str] = None         # missing key => MISSING_CREDENTIAL at fetch time
    ETSY_SHOP_NAME: str = "designthathits"
    ETSY_BASE_URL: str = "https://openapi.etsy.com/v3/application"
    upstream_timeout_s: float = 10.0

    # Retry / backoff (milliseconds)
    retry_max_retries: int = 3
    retry_network_base_ms: int = 500
    retry_network_cap_ms: int = 4000
    retry_rate_limit_base_ms: int = 1000
    retry_rate_limit_cap_ms: int = 8000
    retry_after_cap_ms: int = 30_000             # ceiling on an upstream Retry-After

    # Redis (optional)
    REDIS_URL: Optional[str] = None

    # Cache config
    listings_cache_ttl: int = 10 * 60            # 10 minutes
    sections_cache_ttl: int = 30 * 60            # 30 minutes

    # Catalog
    page_size: int = 24
    ranking_batch_size: int = 100

    # API
    api_prefix: str = "/api"
    ALLOWED_ORIGINS: str = ""                   # CSV

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
