from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.api.deps import catalog_cache_dep, etsy_client_dep, shop_resolver_dep
from storefront.api.v1.schemas.catalog import ErrorOut, SectionsOut
from storefront.domain.services.catalog_svc import get_shop_sections

import logging
import time
logger = logging.getLogger(__name__)

router = APIRouter(tags=["sections"])

@router.get("/sections", response_model=SectionsOut)
async def get_sections(
    client = Depends(etsy_client_dep),
    resolver = Depends(shop_resolver_dep),
    cache = Depends(catalog_cache_dep),
):
    t0 = time.perf_counter()
    try:
        sections = await get_shop_sections(client, resolver, cache)
    except Exception:
        logger.exception("/api/sections unexpected error")
        return JSONResponse(status_code=500, content=ErrorOut(error="Failed to fetch sections.").model_dump())

    logger.info("Response: get_sections returned %s sections in %.4fs", len(sections), time.perf_counter() - t0)
    return SectionsOut(sections=sections)
