"""
Fallback orderings for "Best Sellers" and "Trending".

Best Sellers:
  Etsy API v3 exposes no sales count on public endpoints. The closest popularity proxy is
  `num_favorers`. Rank by favorers descending, ties broken by views descending.
  Favorers are not purchases; this is a disclosed approximation.

Trending:
  score = (num_favorers / days_since_created) * recency_boost
  days_since_created is floored at 1 so same-day listings don't divide by ~0.
  recency_boost: <= 30 days -> 2.0, <= 90 days -> 1.5, else 1.0.
  No time-series data is available, so this is a snapshot approximation of velocity.

Both heuristics run over a bulk batch, before any page slicing.
"""
import time
from typing import Iterable, List, Literal, Optional

from storefront.domain.models.listing import Listing

SECONDS_PER_DAY = 86400


def days_since(timestamp: int, now: float) -> float:
    return max(1.0, (now - timestamp) / SECONDS_PER_DAY)


def recency_boost(timestamp: int, now: float) -> float:
    days = days_since(timestamp, now)
    if days <= 30:
        return 2.0
    if days <= 90:
        return 1.5
    return 1.0


def trending_score(listing: Listing, now: float) -> float:
    velocity = listing.num_favorers / days_since(listing.created_at, now)
    return velocity * recency_boost(listing.created_at, now)


def rank_best_sellers(listings: Iterable[Listing]) -> List[Listing]:
    return sorted(listings, key=lambda l: (-l.num_favorers, -l.views))


def rank_trending(listings: Iterable[Listing], now: Optional[float] = None) -> List[Listing]:
    now = time.time() if now is None else now
    scored = [l.model_copy(update={"score": trending_score(l, now)}) for l in listings]
    # sorted() is stable, equal scores keep batch order
    return sorted(scored, key=lambda l: l.score, reverse=True)


def rank_newest(listings: Iterable[Listing]) -> List[Listing]:
    return sorted(listings, key=lambda l: l.created_at, reverse=True)


def rank_by_price(listings: Iterable[Listing], direction: Literal["asc", "desc"]) -> List[Listing]:
    return sorted(listings, key=lambda l: l.price, reverse=(direction == "desc"))
