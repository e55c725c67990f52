"""Closed value sets stored as strings in the database."""

from enum import Enum


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class EmailFrequency(str, Enum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


class AIProvider(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"


class EmailTemplateKey(str, Enum):
    WELCOME = "welcome"
    ARTICLE_NOTIFICATION = "article_notification"
    WEEKLY_DIGEST = "weekly_digest"
    DAILY_DIGEST = "daily_digest"
    PASSWORD_RESET = "password_reset"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
