"""Business logic services."""

from .article_service import ArticleService
from .category_service import CategoryService
from .email_template_service import EmailTemplateService
from .generation_service import GenerationService
from .mail_client import MailClient, MailDeliveryError
from .notification_service import DeliveryReport, NotificationService
from .preferences_service import PreferencesService
from .prompt_service import PromptService
from .settings_service import SettingsService

__all__ = [
    "ArticleService",
    "CategoryService",
    "EmailTemplateService",
    "GenerationService",
    "MailClient",
    "MailDeliveryError",
    "DeliveryReport",
    "NotificationService",
    "PreferencesService",
    "PromptService",
    "SettingsService",
]
