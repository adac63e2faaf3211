import pytest
from pydantic import ValidationError

from storefront.domain.services.listing_mapper import normalize_listing, normalize_section

from conftest import raw_image, raw_listing


def test_price_is_amount_over_divisor():
    listing = normalize_listing(raw_listing(1, amount=1999, divisor=100, currency="EUR"))
    assert listing.price == pytest.approx(19.99)
    assert listing.currency == "EUR"


def test_primary_image_uses_first_image_mid_resolution():
    raw = raw_listing(1, images=[raw_image("Folded sheet"), raw_image("Second")])
    listing = normalize_listing(raw)
    assert listing.image.url == "https://i.etsystatic.com/570.jpg"
    assert listing.image.alt_text == "Folded sheet"


def test_alt_text_falls_back_to_title():
    listing = normalize_listing(raw_listing(1, title="Confetti Card", images=[raw_image(None)]))
    assert listing.image.alt_text == "Confetti Card"


def test_absent_optionals_get_defaults():
    raw = raw_listing(1, favorers=None, views=None, tags=None, description=None)
    del raw["shop_section_id"]
    del raw["images"]
    listing = normalize_listing(raw)
    assert listing.section_id is None
    assert listing.tags == []
    assert listing.num_favorers == 0
    assert listing.views == 0
    assert listing.description == ""
    assert listing.image is None
    assert listing.score is None


def test_fields_are_carried_over():
    listing = normalize_listing(raw_listing(77, section_id=3, tags=["gift", "paper"], created=1_600_000_000))
    assert listing.id == 77
    assert listing.url == "https://www.etsy.com/listing/77"
    assert listing.section_id == 3
    assert listing.tags == ["gift", "paper"]
    assert listing.created_at == 1_600_000_000
    assert listing.updated_at == 1_600_000_060


def test_listing_is_immutable():
    listing = normalize_listing(raw_listing(1))
    with pytest.raises(ValidationError):
        listing.title = "changed"


def test_malformed_record_raises():
    raw = raw_listing(1)
    del raw["price"]
    with pytest.raises(KeyError):
        normalize_listing(raw)


def test_normalize_section():
    section = normalize_section({"shop_section_id": 5, "title": "Wrapping Paper", "rank": 1, "active_listing_count": 12})
    assert (section.id, section.title, section.count) == (5, "Wrapping Paper", 12)
