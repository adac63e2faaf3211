"""
Tests for the best-seller and trending heuristics.
Same input must always produce same output.
"""
import math

import pytest

from storefront.domain.services.listing_mapper import normalize_listing
from storefront.domain.services.rank import (
    rank_best_sellers,
    rank_by_price,
    rank_newest,
    rank_trending,
    recency_boost,
    trending_score,
)

from conftest import DAY, NOW, raw_listing


def make(listing_id, **kw):
    return normalize_listing(raw_listing(listing_id, **kw))


class TestBestSellers:

    def test_favorers_then_views(self):
        listings = [
            make(1, favorers=5, views=10),
            make(2, favorers=5, views=20),
            make(3, favorers=9, views=1),
        ]
        assert [l.id for l in rank_best_sellers(listings)] == [3, 2, 1]

    def test_full_ties_keep_input_order(self):
        listings = [make(i, favorers=3, views=3) for i in (7, 2, 5)]
        assert [l.id for l in rank_best_sellers(listings)] == [7, 2, 5]

    def test_empty(self):
        assert rank_best_sellers([]) == []

    def test_input_not_mutated(self):
        listings = [make(1, favorers=1), make(2, favorers=2)]
        rank_best_sellers(listings)
        assert [l.id for l in listings] == [1, 2]


class TestTrending:

    def test_listing_created_now_uses_one_day_floor(self):
        fresh = make(1, favorers=10, created=NOW)
        score = trending_score(fresh, now=NOW)
        assert score == pytest.approx(10 / 1 * 2.0)
        assert math.isfinite(score)

    def test_future_timestamp_is_floored_too(self):
        assert trending_score(make(1, favorers=4, created=NOW + DAY), now=NOW) == pytest.approx(8.0)

    @pytest.mark.parametrize(
        "age_days,boost",
        [(0, 2.0), (30, 2.0), (31, 1.5), (90, 1.5), (91, 1.0), (400, 1.0)],
    )
    def test_recency_boost_bands(self, age_days, boost):
        assert recency_boost(NOW - age_days * DAY, now=NOW) == boost

    def test_velocity_beats_raw_count(self):
        old_popular = make(1, favorers=300, created=NOW - 300 * DAY)   # 1/day * 1.0
        new_rising = make(2, favorers=20, created=NOW - 5 * DAY)       # 4/day * 2.0
        ranked = rank_trending([old_popular, new_rising], now=NOW)
        assert [l.id for l in ranked] == [2, 1]

    def test_scores_are_attached_to_output_only(self):
        original = make(1, favorers=6, created=NOW - 60 * DAY)
        [ranked] = rank_trending([original], now=NOW)
        assert ranked.score == pytest.approx(6 / 60 * 1.5)
        assert original.score is None

    def test_deterministic(self):
        listings = [make(i, favorers=i * 3, created=NOW - i * 7 * DAY) for i in range(1, 8)]
        first = [l.id for l in rank_trending(listings, now=NOW)]
        second = [l.id for l in rank_trending(listings, now=NOW)]
        assert first == second

    def test_empty(self):
        assert rank_trending([], now=NOW) == []


def test_rank_newest_and_price():
    listings = [
        make(1, created=NOW - 3 * DAY, amount=500),
        make(2, created=NOW - 1 * DAY, amount=1500),
        make(3, created=NOW - 2 * DAY, amount=1000),
    ]
    assert [l.id for l in rank_newest(listings)] == [2, 3, 1]
    assert [l.id for l in rank_by_price(listings, "asc")] == [1, 3, 2]
    assert [l.id for l in rank_by_price(listings, "desc")] == [2, 3, 1]
