from typing import Any, Dict

from storefront.domain.models.listing import Listing, ListingImage, ShopSection

# mid-resolution variant among url_75x75 / url_170x135 / url_570xN / url_fullxfull
PRIMARY_IMAGE_VARIANT = "url_570xN"


def normalize_listing(raw: Dict[str, Any]) -> Listing:
    """
    Map an Etsy v3 listing record to a Listing.
    Assumes a well-formed record; a malformed one raises from pydantic validation.
    """
    images = raw.get("images") or []
    primary = images[0] if images else None
    price = raw["price"]

    return Listing(
        id=raw["listing_id"],
        title=raw["title"],
        description=raw.get("description") or "",
        url=raw["url"],
        price=price["amount"] / price["divisor"],
        currency=price["currency_code"],
        num_favorers=raw.get("num_favorers") or 0,
        views=raw.get("views") or 0,
        created_at=raw["created_timestamp"],
        updated_at=raw["updated_timestamp"],
        section_id=raw.get("shop_section_id"),
        tags=raw.get("tags") or [],
        image=ListingImage(
            url=primary[PRIMARY_IMAGE_VARIANT],
            alt_text=primary.get("alt_text") or raw["title"],
        ) if primary else None,
    )


def normalize_section(raw: Dict[str, Any]) -> ShopSection:
    return ShopSection(
        id=raw["shop_section_id"],
        title=raw["title"],
        count=raw.get("active_listing_count") or 0,
    )
