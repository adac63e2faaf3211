# storefront/api/deps.py
from fastapi import Depends, Request
from storefront.core.config import Settings, get_settings
from storefront.db.redis import get_redis
from storefront.domain.repositories.catalog_cache_repo import CatalogCacheRepo
from storefront.domain.services.shop_resolver import ShopResolver
from storefront.domain.services.upstream_client import EtsyClient

# Dependency for injecting the Redis client (None when caching is disabled)
def redis_dep():
    return get_redis()

def settings_dep() -> Settings:
    return get_settings()

# Upstream client and shop resolver are created once by the lifespan
def etsy_client_dep(request: Request) -> EtsyClient:
    return request.app.state.etsy_client

def shop_resolver_dep(request: Request) -> ShopResolver:
    return request.app.state.shop_resolver

def catalog_cache_dep(
    redis = Depends(redis_dep),
    settings: Settings = Depends(settings_dep),
) -> CatalogCacheRepo:
    return CatalogCacheRepo(
        redis,
        listings_ttl=settings.listings_cache_ttl,
        sections_ttl=settings.sections_cache_ttl,
    )
