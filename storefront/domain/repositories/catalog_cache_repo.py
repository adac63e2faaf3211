import json
import logging
from typing import List, Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from storefront.domain.models.listing import ListingsPage, ShopSection

logger = logging.getLogger(__name__)


class CatalogCacheRepo:
    """
    Redis cache for upstream catalog reads (sections, listing pages).
    Redis is optional: with no client, or on any redis error, reads miss and writes are skipped.
    A cached value that no longer validates also counts as a miss.
    """

    def __init__(self, redis: Optional[Redis], listings_ttl: int = 600, sections_ttl: int = 1800):
        self.cache = redis
        self.listings_ttl = listings_ttl
        self.sections_ttl = sections_ttl

    @staticmethod
    def sections_key(shop_id: int) -> str:
        return f"sections:{shop_id}"

    @staticmethod
    def listings_key(page_size: int, canonical_query: str) -> str:
        """The canonical query string is deterministic, so it is used as-is."""
        return f"listings:{page_size}:{canonical_query}"

    async def _get(self, key: str):
        if self.cache is None:
            return None
        try:
            if raw := await self.cache.get(key):
                return json.loads(raw)
            return None
        except Exception as e:
            logger.warning("cache get error key=%s err=%s", key, e)
            return None

    async def _set(self, key: str, value, ttl: int) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, json.dumps(value, default=str), ex=ttl)
            logger.debug("cache set key=%s ttl=%ds", key, ttl)
        except Exception as e:
            logger.warning("cache set error key=%s err=%s", key, e)

    async def get_sections(self, shop_id: int) -> Optional[List[ShopSection]]:
        key = self.sections_key(shop_id)
        data = await self._get(key)
        if data is None:
            return None
        try:
            return [ShopSection.model_validate(x) for x in data]
        except (TypeError, ValidationError) as e:
            logger.warning("cache stale entry key=%s err=%s", key, e)
            return None

    async def set_sections(self, shop_id: int, sections: List[ShopSection]) -> None:
        await self._set(self.sections_key(shop_id), [s.model_dump() for s in sections], self.sections_ttl)

    async def get_page(self, page_size: int, canonical_query: str) -> Optional[ListingsPage]:
        key = self.listings_key(page_size, canonical_query)
        data = await self._get(key)
        if data is None:
            return None
        try:
            return ListingsPage.model_validate(data)
        except ValidationError as e:
            # e.g. written before a schema change
            logger.warning("cache stale entry key=%s err=%s", key, e)
            return None

    async def set_page(self, page_size: int, canonical_query: str, page: ListingsPage) -> None:
        await self._set(self.listings_key(page_size, canonical_query), page.model_dump(), self.listings_ttl)
