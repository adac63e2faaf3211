# storefront/api/v1/schemas/catalog.py
from pydantic import BaseModel, Field
from typing import List

from storefront.domain.models.listing import Listing, ShopSection


class ListingsPageOut(BaseModel):
    listings: List[Listing]
    total: int
    page: int
    page_size: int
    query: str = Field("", description="Canonical query string (stable cache/share key)")


class SectionsOut(BaseModel):
    sections: List[ShopSection]


class StorefrontOut(ListingsPageOut):
    sections: List[ShopSection]


class ErrorOut(BaseModel):
    error: str


class ContactIn(BaseModel):
    name: str = ""
    email: str = ""
    message: str = ""


class ContactOut(BaseModel):
    success: bool
