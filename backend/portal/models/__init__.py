"""Database models."""

from .enums import ArticleStatus, EmailFrequency, AIProvider, EmailTemplateKey, UserRole
from .article import Article
from .category import Category, ArticleCategory
from .prompt import AiPrompt, AiPromptVersion
from .email_template import EmailTemplate
from .user import User, UserPreferences, UserPreferenceCategory, SystemSetting

__all__ = [
    "ArticleStatus", "EmailFrequency", "AIProvider", "EmailTemplateKey", "UserRole",
    "Article", "Category", "ArticleCategory",
    "AiPrompt", "AiPromptVersion",
    "EmailTemplate",
    "User", "UserPreferences", "UserPreferenceCategory", "SystemSetting",
]
