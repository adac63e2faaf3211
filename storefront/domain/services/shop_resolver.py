import logging
from typing import Optional

from storefront.domain.models.result import Result, UpstreamErrorKind
from storefront.domain.services.upstream_client import EtsyClient

logger = logging.getLogger(__name__)


class ShopResolver:
    """
    Resolves the configured shop name to Etsy's numeric shop_id once, then serves it from memory
    until the process restarts (shop identity never changes).

    One instance is created by the lifespan and injected per request. No lock: concurrent first
    resolutions may both hit Etsy, but they write the same value.
    """

    def __init__(self, client: EtsyClient, shop_name: str):
        self.client = client
        self.shop_name = shop_name
        self._shop_id: Optional[int] = None

    @property
    def cached_shop_id(self) -> Optional[int]:
        return self._shop_id

    async def resolve_shop_id(self) -> Result:
        if self._shop_id is not None:
            return Result.success(self._shop_id)

        result = await self.client.fetch(f"/shops/{self.shop_name}")
        if not result.ok:
            logger.warning("shop_resolver failed shop=%s kind=%s", self.shop_name, result.kind.value)
            return result

        shop_id = result.data.get("shop_id") if isinstance(result.data, dict) else None
        if not isinstance(shop_id, int):
            logger.error("shop_resolver unexpected payload shop=%s data=%s", self.shop_name, str(result.data)[:500])
            return Result.failure(UpstreamErrorKind.UNKNOWN, "Unexpected shop payload")

        self._shop_id = shop_id
        logger.info("shop_resolver resolved shop=%s shop_id=%s", self.shop_name, shop_id)
        return Result.success(shop_id)
