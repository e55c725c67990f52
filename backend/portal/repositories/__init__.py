"""Data access repositories."""

from .base import BaseRepository
from .article_repository import ArticleRepository
from .category_repository import CategoryRepository, CategoryResolution
from .prompt_repository import PromptRepository, PromptVersionRepository
from .email_template_repository import EmailTemplateRepository
from .preferences_repository import (
    PreferencesRepository,
    SystemSettingRepository,
    UserRepository,
)

__all__ = [
    "BaseRepository",
    "ArticleRepository",
    "CategoryRepository",
    "CategoryResolution",
    "PromptRepository",
    "PromptVersionRepository",
    "EmailTemplateRepository",
    "PreferencesRepository",
    "SystemSettingRepository",
    "UserRepository",
]
