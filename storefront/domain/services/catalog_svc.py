"""
Catalog reads for the storefront: sections, native listing pages, ranked listing pages.

Caching:
- sections: redis, `sections_cache_ttl` (30 min by default)
- listing pages: redis, `listings_cache_ttl` (10 min), keyed by the canonical query string
- shop id: in-process, see ShopResolver
Stale data up to the TTL is accepted; Etsy offers no change notifications.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from storefront.core.config import Settings
from storefront.domain.models.listing import Listing, ListingsPage, ShopSection
from storefront.domain.models.query import ListingsQuery, PillOption, QueryDescriptor, SortOption
from storefront.domain.models.result import Result, UpstreamErrorKind
from storefront.domain.repositories.catalog_cache_repo import CatalogCacheRepo
from storefront.domain.services.listing_mapper import normalize_listing, normalize_section
from storefront.domain.services.query import to_query_string
from storefront.domain.services.rank import rank_best_sellers, rank_trending
from storefront.domain.services.shop_resolver import ShopResolver
from storefront.domain.services.upstream_client import EtsyClient

logger = logging.getLogger(__name__)

UPSTREAM_MAX_LIMIT = 100

# native upstream sort per sort option: (sort_on, sort_order)
_NATIVE_SORT: Dict[SortOption, Tuple[str, str]] = {
    SortOption.NEWEST: ("created", "desc"),
    SortOption.PRICE_ASC: ("price", "asc"),
    SortOption.PRICE_DESC: ("price", "desc"),
}


def _filter_sections(listings: Iterable[Listing], section_ids: Iterable[int]) -> List[Listing]:
    wanted = set(section_ids)
    return [l for l in listings if l.section_id is not None and l.section_id in wanted]


def _matches_term(listing: Listing, term: str) -> bool:
    needle = term.lower()
    return (
        needle in listing.title.lower()
        or needle in listing.description.lower()
        or any(needle in t.lower() for t in listing.tags)
    )


# a 200 answer whose records don't fit the mapper
_MALFORMED = (AttributeError, KeyError, TypeError, ValueError, ZeroDivisionError)


def _decode(payload: Any, mapper: Callable[[Dict[str, Any]], Any], what: str) -> Optional[Tuple[list, int]]:
    """Map `results` and read `count`; None when the payload has an unexpected shape."""
    try:
        items = [mapper(r) for r in payload.get("results") or []]
        return items, int(payload.get("count") or 0)
    except _MALFORMED as e:
        logger.error("%s malformed payload err=%r", what, e)
        return None


# --- sections -----------------------------------------------------------------

async def get_shop_sections(
    client: EtsyClient,
    resolver: ShopResolver,
    cache: Optional[CatalogCacheRepo] = None,
) -> List[ShopSection]:
    """Never fails outward: any upstream failure degrades to []."""
    shop = await resolver.resolve_shop_id()
    if not shop.ok:
        logger.warning("sections shop_id unavailable kind=%s, returning empty sections", shop.kind.value)
        return []

    if cache is not None:
        cached = await cache.get_sections(shop.data)
        if cached is not None:
            logger.info("sections cache_hit shop_id=%s items=%s", shop.data, len(cached))
            return cached

    result = await client.fetch(f"/shops/{shop.data}/sections")
    if not result.ok:
        logger.warning(
            "sections failed kind=%s msg=%s, returning empty sections",
            result.kind.value, result.error.message,
        )
        return []

    decoded = _decode(result.data, normalize_section, "sections")
    if decoded is None:
        return []
    sections, _ = decoded
    if cache is not None and sections:
        await cache.set_sections(shop.data, sections)
    logger.info("sections ok shop_id=%s items=%s", shop.data, len(sections))
    return sections


# --- listings -----------------------------------------------------------------

async def get_listings(client: EtsyClient, resolver: ShopResolver, query: ListingsQuery) -> Result:
    """
    One page of active listings using Etsy's native sort/keyword filter.
    Etsy accepts a single shop_section_id per call; with several sections selected the page is
    filtered locally after the fetch.
    """
    shop = await resolver.resolve_shop_id()
    if not shop.ok:
        return shop

    limit = min(query.page_size, UPSTREAM_MAX_LIMIT)
    params: Dict[str, Any] = {
        "limit": limit,
        "offset": (query.page - 1) * query.page_size,
        "includes": "Images",
        "sort_on": query.sort_on,
        "sort_order": query.sort_order,
    }
    if query.term:
        params["keywords"] = query.term

    section_ids = query.section_ids or ()
    if len(section_ids) == 1:
        params["shop_section_id"] = section_ids[0]

    result = await client.fetch(f"/shops/{shop.data}/listings/active", params=params)
    if not result.ok:
        return result

    decoded = _decode(result.data, normalize_listing, "listings")
    if decoded is None:
        return Result.failure(UpstreamErrorKind.UNKNOWN, "Unexpected listings payload")
    listings, total = decoded
    if len(section_ids) > 1:
        listings = _filter_sections(listings, section_ids)

    return Result.success(ListingsPage(listings=listings, total=total))


async def get_listings_for_ranking(
    client: EtsyClient,
    resolver: ShopResolver,
    section_ids: Optional[Iterable[int]] = None,
    batch_size: int = UPSTREAM_MAX_LIMIT,
) -> List[Listing]:
    """Bulk batch (newest first) for local ranking. Degrades to [] on any failure."""
    shop = await resolver.resolve_shop_id()
    if not shop.ok:
        logger.warning("ranking_batch shop_id unavailable kind=%s", shop.kind.value)
        return []

    params = {
        "limit": min(batch_size, UPSTREAM_MAX_LIMIT),
        "offset": 0,
        "includes": "Images",
        "sort_on": "created",
        "sort_order": "desc",
    }
    result = await client.fetch(f"/shops/{shop.data}/listings/active", params=params)
    if not result.ok:
        logger.warning("ranking_batch failed kind=%s msg=%s", result.kind.value, result.error.message)
        return []

    decoded = _decode(result.data, normalize_listing, "ranking_batch")
    if decoded is None:
        return []
    listings, _ = decoded
    section_ids = list(section_ids or [])
    if section_ids:
        listings = _filter_sections(listings, section_ids)
    return listings


# --- browse -------------------------------------------------------------------

async def _ranked_page(
    client: EtsyClient,
    resolver: ShopResolver,
    d: QueryDescriptor,
    settings: Settings,
    now: Optional[float] = None,
) -> ListingsPage:
    batch = await get_listings_for_ranking(client, resolver, d.section_ids, settings.ranking_batch_size)
    if d.q:
        batch = [l for l in batch if _matches_term(l, d.q)]

    ranked = rank_best_sellers(batch) if d.pill == PillOption.BEST else rank_trending(batch, now=now)
    start = (d.page - 1) * settings.page_size
    return ListingsPage(listings=ranked[start:start + settings.page_size], total=len(ranked))


async def browse(
    client: EtsyClient,
    resolver: ShopResolver,
    d: QueryDescriptor,
    settings: Settings,
    cache: Optional[CatalogCacheRepo] = None,
    now: Optional[float] = None,
) -> Result:
    """
    Serve one browsing request.
    Pills best/trending rank a bulk batch locally and never fail (empty page instead);
    everything else is a native Etsy page and may return a typed failure.
    """
    start_time = time.perf_counter()
    canonical = to_query_string(d)
    logger.info("browse start query=%r", canonical)

    if cache is not None:
        cached = await cache.get_page(settings.page_size, canonical)
        if cached is not None:
            logger.info("browse cache_hit query=%r items=%s", canonical, len(cached.listings))
            return Result.success(cached)

    if d.needs_ranking:
        page = await _ranked_page(client, resolver, d, settings, now=now)
        # an empty ranked page may be a degraded upstream failure; don't pin it in cache
        if cache is not None and page.total > 0:
            await cache.set_page(settings.page_size, canonical, page)
        logger.info(
            "browse ranked pill=%s items=%s total=%s total_time=%.3fs",
            d.pill.value, len(page.listings), page.total, time.perf_counter() - start_time,
        )
        return Result.success(page)

    sort_on, sort_order = _NATIVE_SORT[d.sort]
    result = await get_listings(
        client,
        resolver,
        ListingsQuery(
            term=d.q or None,
            section_ids=d.section_ids or None,
            sort_on=sort_on,
            sort_order=sort_order,
            page=d.page,
            page_size=settings.page_size,
        ),
    )
    if not result.ok:
        logger.warning("browse failed query=%r kind=%s", canonical, result.kind.value)
        return result

    if cache is not None:
        await cache.set_page(settings.page_size, canonical, result.data)
    logger.info(
        "browse done items=%s total=%s total_time=%.3fs",
        len(result.data.listings), result.data.total, time.perf_counter() - start_time,
    )
    return result


async def storefront_snapshot(
    client: EtsyClient,
    resolver: ShopResolver,
    d: QueryDescriptor,
    settings: Settings,
    cache: Optional[CatalogCacheRepo] = None,
) -> Tuple[List[ShopSection], Result]:
    """Sections and the listing page are independent, so both are fetched concurrently."""
    sections, page = await asyncio.gather(
        get_shop_sections(client, resolver, cache),
        browse(client, resolver, d, settings, cache),
    )
    return sections, page


def empty_page() -> ListingsPage:
    return ListingsPage(listings=[], total=0)


def is_absent(result: Result) -> bool:
    """NOT_FOUND means "nothing there", not a transient failure."""
    return not result.ok and result.kind == UpstreamErrorKind.NOT_FOUND
