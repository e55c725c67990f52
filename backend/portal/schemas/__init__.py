"""Pydantic schemas for API validation."""

from .article import (
    ArticleCreate,
    ArticleUpdate,
    ArticleResponse,
    ArticleListItem,
    PublicArticleResponse,
    ArticlePageResponse,
    PageWindowResponse,
)
from .category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryDetailResponse,
    CategoryWithCountResponse,
)
from .prompt import (
    PromptCreate,
    PromptUpdate,
    PromptResponse,
    PromptVersionResponse,
)
from .email_template import (
    EmailTemplateCreate,
    EmailTemplateUpdate,
    EmailTemplateResponse,
    RenderedEmail,
)
from .preferences import PreferencesUpdate, PreferencesResponse

__all__ = [
    "ArticleCreate",
    "ArticleUpdate",
    "ArticleResponse",
    "ArticleListItem",
    "PublicArticleResponse",
    "ArticlePageResponse",
    "PageWindowResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryDetailResponse",
    "CategoryWithCountResponse",
    "PromptCreate",
    "PromptUpdate",
    "PromptResponse",
    "PromptVersionResponse",
    "EmailTemplateCreate",
    "EmailTemplateUpdate",
    "EmailTemplateResponse",
    "RenderedEmail",
    "PreferencesUpdate",
    "PreferencesResponse",
]
