from enum import Enum
from typing import Optional, Tuple, Literal

from pydantic import BaseModel, Field, field_validator


class SortOption(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class PillOption(str, Enum):
    NEW = "new"
    BEST = "best"
    TRENDING = "trending"


# Pills whose ordering is computed locally over a bulk batch
RANKED_PILLS = {PillOption.BEST, PillOption.TRENDING}


class QueryDescriptor(BaseModel):
    """
    Canonical shape of a browsing request.
    Section ids are kept unique and ascending so equal filters compare (and serialize) equal.
    """
    q: str = ""
    section_ids: Tuple[int, ...] = ()
    sort: SortOption = SortOption.NEWEST
    pill: Optional[PillOption] = None
    page: int = Field(1, ge=1)

    model_config = {"frozen": True}

    @field_validator("section_ids", mode="before")
    @classmethod
    def _canonical_sections(cls, v):
        return tuple(sorted(set(v or ())))

    @property
    def needs_ranking(self) -> bool:
        return self.pill in RANKED_PILLS


class ListingsQuery(BaseModel):
    """Input of a native (upstream-sorted) listing fetch."""
    term: Optional[str] = None
    section_ids: Optional[Tuple[int, ...]] = None
    sort_on: Literal["created", "price", "score"] = "created"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    page_size: int = Field(24, ge=1)

    model_config = {"frozen": True}
