"""Shared fixtures: a fake Etsy API behind httpx.MockTransport, and a no-wait sleep."""
from typing import Callable, List, Optional

import httpx
import pytest

from storefront.core.config import Settings
from storefront.domain.services.shop_resolver import ShopResolver
from storefront.domain.services.upstream_client import EtsyClient, RetryPolicy

BASE_URL = "https://etsy.test/v3/application"
SHOP_NAME = "designthathits"
SHOP_ID = 4242
NOW = 1_700_000_000  # fixed "current time" for ranking tests
DAY = 86400


def raw_listing(
    listing_id: int,
    title: str = "Birthday Wrapping Paper",
    favorers: Optional[int] = 0,
    views: Optional[int] = 0,
    created: int = NOW - 10 * DAY,
    section_id: Optional[int] = None,
    tags: Optional[List[str]] = None,
    description: Optional[str] = "Printed on demand",
    amount: int = 1250,
    divisor: int = 100,
    currency: str = "USD",
    images: Optional[list] = None,
) -> dict:
    return {
        "listing_id": listing_id,
        "title": title,
        "description": description,
        "url": f"https://www.etsy.com/listing/{listing_id}",
        "price": {"amount": amount, "divisor": divisor, "currency_code": currency},
        "quantity": 10,
        "num_favorers": favorers,
        "views": views,
        "created_timestamp": created,
        "updated_timestamp": created + 60,
        "state": "active",
        "shop_section_id": section_id,
        "tags": tags,
        "images": images if images is not None else [],
    }


def raw_image(alt_text: Optional[str] = "Front view") -> dict:
    return {
        "listing_image_id": 1,
        "listing_id": 1,
        "url_75x75": "https://i.etsystatic.com/75.jpg",
        "url_170x135": "https://i.etsystatic.com/170.jpg",
        "url_570xN": "https://i.etsystatic.com/570.jpg",
        "url_fullxfull": "https://i.etsystatic.com/full.jpg",
        "alt_text": alt_text,
    }


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays in seconds."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeEtsy:
    """
    Minimal Etsy v3 double: shop lookup, sections, active listings.
    Set `fail_shop` / `fail_listings` / `fail_sections` to a status code to force a failure;
    the failure body carries `fail_body`, which must never reach an end user.
    """

    def __init__(self, listings: Optional[list] = None, sections: Optional[list] = None, count: Optional[int] = None):
        self.listings = listings or []
        self.sections = sections or []
        self.count = count
        self.fail_shop: Optional[int] = None
        self.fail_listings: Optional[int] = None
        self.fail_sections: Optional[int] = None
        self.fail_body = "upstream exploded: secret-trace-123"
        self.requests: List[httpx.Request] = []

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith(f"/shops/{SHOP_NAME}"):
            if self.fail_shop is not None:
                return httpx.Response(self.fail_shop, text=self.fail_body)
            return httpx.Response(200, json={"shop_id": SHOP_ID, "shop_name": SHOP_NAME})
        if path.endswith(f"/shops/{SHOP_ID}/sections"):
            if self.fail_sections is not None:
                return httpx.Response(self.fail_sections, text=self.fail_body)
            return httpx.Response(200, json={"count": len(self.sections), "results": self.sections})
        if path.endswith(f"/shops/{SHOP_ID}/listings/active"):
            if self.fail_listings is not None:
                return httpx.Response(self.fail_listings, text=self.fail_body)
            results = self.listings
            section = request.url.params.get("shop_section_id")
            if section:
                results = [l for l in results if l["shop_section_id"] == int(section)]
            count = self.count if self.count is not None else len(results)
            return httpx.Response(200, json={"count": count, "results": results})
        return httpx.Response(404, json={"error": "no route"})


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_client(sleep_recorder) -> Callable[..., EtsyClient]:
    def _make(handler, api_key: Optional[str] = "test-key", policy: Optional[RetryPolicy] = None) -> EtsyClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return EtsyClient(http, api_key=api_key, base_url=BASE_URL, policy=policy, sleep=sleep_recorder)
    return _make


@pytest.fixture
def fake_etsy() -> FakeEtsy:
    return FakeEtsy()


@pytest.fixture
def etsy_client(make_client, fake_etsy) -> EtsyClient:
    return make_client(fake_etsy)


@pytest.fixture
def resolver(etsy_client) -> ShopResolver:
    return ShopResolver(etsy_client, SHOP_NAME)


@pytest.fixture
def settings() -> Settings:
    return Settings(page_size=2, ranking_batch_size=100)
