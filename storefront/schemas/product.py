# storefront/schemas/product.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class Product(BaseModel):
    """
    Row of the `products` table.

    The remote schema marks almost every column nullable; here `id`, `price`
    and at least one of the two names are required, anything else is optional.
    """
    id: int
    name: Optional[str] = None
    name_ar: Optional[str] = None
    description: Optional[str] = None
    description_ar: Optional[str] = None
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    rating: Optional[float] = None
    stock_quantity: Optional[int] = None  # display only
    available: bool = True
    category: Optional[str] = None
    featured: bool = False
    discount_percentage: Optional[float] = None
    created_at: Optional[datetime] = None

    @field_validator("available", mode="before")
    @classmethod
    def null_available_means_available(cls, v):
        return True if v is None else v

    @field_validator("featured", mode="before")
    @classmethod
    def null_featured_means_not_featured(cls, v):
        return False if v is None else v

    @model_validator(mode="after")
    def require_a_name(self):
        if not (self.name_ar or self.name):
            raise ValueError("product must have a name in at least one language")
        return self

    def localized_name(self, lang: str = "ar") -> str:
        if lang == "ar":
            return self.name_ar or self.name or ""
        return self.name or self.name_ar or ""

    def localized_description(self, lang: str = "ar") -> str:
        if lang == "ar":
            return self.description_ar or self.description or ""
        return self.description or self.description_ar or ""


class ProductPage(BaseModel):
    items: List[Product]
    page: int
    size: int
    has_more: bool = False
