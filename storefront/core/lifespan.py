# storefront/core/lifespan.py
from contextlib import asynccontextmanager
from fastapi import FastAPI
import httpx

from storefront.db import redis as r
from storefront.core.config import get_settings
from storefront.domain.services.shop_resolver import ShopResolver
from storefront.domain.services.upstream_client import EtsyClient, RetryPolicy


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # One shared connection pool for every upstream call
    http = httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    client = EtsyClient(
        http,
        api_key=settings.ETSY_API_KEY,
        base_url=settings.ETSY_BASE_URL,
        policy=RetryPolicy.from_settings(settings),
    )
    app.state.etsy_client = client
    # Lives as long as the process: shop id is resolved once
    app.state.shop_resolver = ShopResolver(client, settings.ETSY_SHOP_NAME)

    if not settings.ETSY_API_KEY:
        print("⚠️ ETSY_API_KEY not set, catalog endpoints will answer 503")

    # Redis is optional
    if settings.REDIS_URL:
        try:
            await r.connect()
        except Exception as e:
            print(f"⚠️ Redis connection failed (ignored): {e}")
    else:
        print("⚠️ No REDIS_URL provided, skipping Redis connection")

    # Application runs
    yield

    # --- Shutdown ---
    try:
        if settings.REDIS_URL:
            await r.disconnect()
    except Exception as e:
        print(f"⚠️ Redis disconnect failed: {e}")

    await http.aclose()
    print("🔌 Etsy HTTP client closed")
