"""Article schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Union

from ..models.enums import ArticleStatus
from .category import CategoryResponse


class ArticleBase(BaseModel):
    """Fields shared by create payloads and responses."""
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    summary: Optional[str] = None
    meta_description: Optional[str] = None
    image: Optional[str] = None
    source_url: Optional[str] = None


class ArticleCreate(ArticleBase):
    """Schema for creating an article.

    ``categories`` accepts either category ids or category names; the whole
    request is rejected if any of them does not resolve.
    """
    slug: Optional[str] = None  # generated from the title when omitted
    status: ArticleStatus = ArticleStatus.DRAFT
    categories: List[str] = []
    prompt_id: Optional[str] = None

    @field_validator('title')
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Ny logistikpark ved Køge",
                    "content": "# Ny logistikpark\n\nEn ny park på 40.000 m² ...",
                    "summary": "Udvikler opfører logistikpark syd for København.",
                    "status": "draft",
                    "categories": ["Investering", "Byggeri"],
                }
            ]
        }
    }


class ArticleUpdate(BaseModel):
    """Partial article update. ``categories=None`` leaves membership untouched."""
    title: Optional[str] = None
    slug: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    meta_description: Optional[str] = None
    image: Optional[str] = None
    source_url: Optional[str] = None
    status: Optional[ArticleStatus] = None
    categories: Optional[List[str]] = None


class ArticleResponse(ArticleBase):
    """Full article with categories."""
    id: str
    slug: str
    status: ArticleStatus
    published_date: Optional[datetime] = None
    prompt_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    categories: List[CategoryResponse] = []

    class Config:
        from_attributes = True


class ArticleListItem(BaseModel):
    """Article card in listings."""
    id: str
    title: str
    slug: str
    summary: Optional[str] = None
    image: Optional[str] = None
    status: ArticleStatus
    published_date: Optional[datetime] = None
    content_preview: str = ""
    categories: List[CategoryResponse] = []


class PublicArticleResponse(BaseModel):
    """Article as served to readers. ``content`` is truncated when ``is_preview``."""
    id: str
    title: str
    slug: str
    content: str
    summary: Optional[str] = None
    meta_description: Optional[str] = None
    image: Optional[str] = None
    published_date: Optional[datetime] = None
    categories: List[CategoryResponse] = []
    is_preview: bool = False


class PageWindowResponse(BaseModel):
    """Pagination controls for a listing page."""
    pages: List[Union[int, str]]
    current: int
    total: int
    has_previous: bool
    has_next: bool


class ArticlePageResponse(BaseModel):
    """One page of published articles."""
    articles: List[ArticleListItem]
    total_items: int
    pagination: PageWindowResponse


class ArticlePreviewResponse(BaseModel):
    """Both paywall cuts of an article, for editors checking what anonymous readers see."""
    preview: str
    extended_preview: str
    total_chars: int
    percentage: float
