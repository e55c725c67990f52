"""API routes."""

from .articles import router as articles_router, admin_router as admin_articles_router
from .categories import router as categories_router, admin_router as admin_categories_router
from .prompts import router as prompts_router
from .email_templates import router as email_templates_router
from .preferences import router as preferences_router
from .admin_settings import router as admin_settings_router
from .email import router as email_router

__all__ = [
    "articles_router",
    "admin_articles_router",
    "categories_router",
    "admin_categories_router",
    "prompts_router",
    "email_templates_router",
    "preferences_router",
    "admin_settings_router",
    "email_router",
]
