# storefront/api/v1/routers/listings.py
"""
Listing endpoints. The Etsy key stays server-side; catalog_svc returns Result values and
this module maps error kinds to HTTP statuses and safe, fixed messages.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import time
import logging

from storefront.api.deps import catalog_cache_dep, etsy_client_dep, settings_dep, shop_resolver_dep
from storefront.api.v1.schemas.catalog import ErrorOut, ListingsPageOut, StorefrontOut
from storefront.core.config import Settings
from storefront.domain.models.query import QueryDescriptor
from storefront.domain.models.result import Result, UpstreamErrorKind
from storefront.domain.services.catalog_svc import browse, empty_page, is_absent, storefront_snapshot
from storefront.domain.services.query import parse_query, to_query_string

logger = logging.getLogger(__name__)

router = APIRouter(tags=["listings"])

# NOT_FOUND never reaches these maps: it renders as an empty page
_HTTP_STATUS = {
    UpstreamErrorKind.MISSING_CREDENTIAL: 503,  # service misconfigured
    UpstreamErrorKind.RATE_LIMITED: 429,
    UpstreamErrorKind.NETWORK_ERROR: 502,       # upstream unreachable
    UpstreamErrorKind.UPSTREAM_ERROR: 502,
    UpstreamErrorKind.UNKNOWN: 500,
}

_USER_MESSAGE = {
    UpstreamErrorKind.MISSING_CREDENTIAL: "The shop is temporarily unavailable. Please check back soon.",
    UpstreamErrorKind.RATE_LIMITED: "We're receiving a lot of traffic. Please wait a moment and try again.",
    UpstreamErrorKind.NETWORK_ERROR: "Couldn't reach the shop right now. Please try refreshing.",
    UpstreamErrorKind.UPSTREAM_ERROR: "Couldn't reach the shop right now. Please try refreshing.",
}
_GENERIC_MESSAGE = "Something went wrong loading the shop. Please try again."


def http_status_for(kind: UpstreamErrorKind) -> int:
    return _HTTP_STATUS.get(kind, 500)


def user_message_for(kind: UpstreamErrorKind) -> str:
    return _USER_MESSAGE.get(kind, _GENERIC_MESSAGE)


def _error_response(result: Result, route: str) -> JSONResponse:
    kind = result.kind
    # real detail stays in the logs
    logger.error("%s %s: %s", route, kind.value, result.error.message)
    return JSONResponse(
        status_code=http_status_for(kind),
        content=ErrorOut(error=user_message_for(kind)).model_dump(),
    )


def _page_out(result: Result, d: QueryDescriptor, settings: Settings) -> ListingsPageOut:
    page = result.data if result.ok else empty_page()
    return ListingsPageOut(
        listings=page.listings,
        total=page.total,
        page=d.page,
        page_size=settings.page_size,
        query=to_query_string(d),
    )


@router.get("/listings", response_model=ListingsPageOut, responses={429: {"model": ErrorOut}, 502: {"model": ErrorOut}, 503: {"model": ErrorOut}})
async def get_listings(
    request: Request,
    client = Depends(etsy_client_dep),
    resolver = Depends(shop_resolver_dep),
    cache = Depends(catalog_cache_dep),
    settings: Settings = Depends(settings_dep),
):
    """
    Query params: q, sections (comma-separated ids), sort (newest|price_asc|price_desc),
    pill (new|best|trending), page. Malformed values fall back to defaults.
    """
    t0 = time.perf_counter()
    try:
        d = parse_query(dict(request.query_params))
        logger.info("Request: listings query=%r", to_query_string(d))

        result = await browse(client, resolver, d, settings, cache)
        if not result.ok and not is_absent(result):
            return _error_response(result, "/api/listings")

        out = _page_out(result, d, settings)
        logger.info(
            "Response: listings items=%s total=%s elapsed_time=%.4fs",
            len(out.listings), out.total, time.perf_counter() - t0,
        )
        return out
    except Exception:
        # e.g. a bug in parsing or ranking
        logger.exception("/api/listings unexpected error")
        return JSONResponse(status_code=500, content=ErrorOut(error=_GENERIC_MESSAGE).model_dump())


@router.get("/storefront", response_model=StorefrontOut)
async def get_storefront(
    request: Request,
    client = Depends(etsy_client_dep),
    resolver = Depends(shop_resolver_dep),
    cache = Depends(catalog_cache_dep),
    settings: Settings = Depends(settings_dep),
):
    """
    First render of the catalog page: sections and the requested listing page in one call,
    fetched concurrently. A failed listing fetch renders as an empty grid.
    """
    t0 = time.perf_counter()
    try:
        d = parse_query(dict(request.query_params))
        sections, result = await storefront_snapshot(client, resolver, d, settings, cache)
        if not result.ok:
            logger.warning("/api/storefront listings degraded kind=%s", result.kind.value)

        page = _page_out(result, d, settings)
        logger.info(
            "Response: storefront sections=%s items=%s elapsed_time=%.4fs",
            len(sections), len(page.listings), time.perf_counter() - t0,
        )
        return StorefrontOut(sections=sections, **page.model_dump())
    except Exception:
        logger.exception("/api/storefront unexpected error")
        return JSONResponse(status_code=500, content=ErrorOut(error=_GENERIC_MESSAGE).model_dump())
