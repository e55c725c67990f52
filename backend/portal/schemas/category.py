"""Category schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class CategoryBase(BaseModel):
    """Base category schema."""
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = None  # derived from name when omitted
    description: Optional[str] = None
    hero_image: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be blank")
        return v


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""


class CategoryUpdate(BaseModel):
    """Partial category update."""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    hero_image: Optional[str] = None


class CategoryResponse(BaseModel):
    """Category as embedded in article payloads."""
    id: str
    name: str
    slug: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class CategoryDetailResponse(CategoryResponse):
    """Category with admin-facing fields."""
    hero_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryWithCountResponse(CategoryResponse):
    """Public category listing entry."""
    hero_image: Optional[str] = None
    article_count: int = 0
