from fastapi import FastAPI
from storefront.core.config import get_settings
from storefront.core.lifespan import lifespan
from storefront.api.v1.routers.health import router as health_router
from storefront.api.v1.routers.listings import router as listings_router
from storefront.api.v1.routers.sections import router as sections_router
from storefront.api.v1.routers.contact import router as contact_router
from storefront.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. ALLOWED_ORIGINS="https://designthathits.com,https://www.designthathits.com"
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or [
        "https://designthathits.com",
        "https://www.designthathits.com",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(listings_router, prefix=settings.api_prefix)    # listings + storefront snapshot
app.include_router(sections_router, prefix=settings.api_prefix)
app.include_router(contact_router, prefix=settings.api_prefix)
