from pydantic import BaseModel, Field
from typing import Optional, List


class ListingImage(BaseModel):
    url: str
    alt_text: str
    model_config = {"frozen": True}


class Listing(BaseModel):
    """Normalized shop listing. Rebuilt on every fetch, never persisted."""
    id: int
    title: str
    description: str = ""
    url: str
    price: float                        # amount / divisor, in `currency`
    currency: str
    num_favorers: int = 0
    views: int = 0
    created_at: int                     # seconds since epoch
    updated_at: int
    section_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    image: Optional[ListingImage] = None
    score: Optional[float] = None       # set by ranking only

    model_config = {"frozen": True}  # immuable = safe


class ShopSection(BaseModel):
    id: int
    title: str
    count: int
    model_config = {"frozen": True}


class ListingsPage(BaseModel):
    listings: List[Listing]
    total: int
    model_config = {"frozen": True}
