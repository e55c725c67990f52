"""Email template schemas.

Each template key has its own content contract. The JSON stored in
``EmailTemplate.content`` must validate against the model registered for
its key in ``CONTENT_MODELS``.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict, Type

from ..models.enums import EmailTemplateKey


class WelcomeEmailContent(BaseModel):
    heading: str
    greeting: str  # "Hej {userName},"
    intro_paragraph: str
    description_paragraph: str
    primary_cta_text: str
    preferences_info_paragraph: str
    secondary_cta_text: str
    closing_text: str
    signature_text: str


class ArticleNotificationContent(BaseModel):
    primary_cta_text: str
    footer_text: str


class WeeklyDigestContent(BaseModel):
    heading: str
    greeting: str
    intro_paragraph: str  # may use {weekStart} and {weekEnd}
    no_articles_message: str
    article_cta_text: str
    footer_text: str
    final_cta_text: str


class DailyDigestContent(WeeklyDigestContent):
    """Same contract as the weekly digest; copy may use {date}."""


class PasswordResetContent(BaseModel):
    heading: str
    greeting: str
    request_paragraph: str
    instructions_paragraph: str  # may use {expirationMinutes}
    primary_cta_text: str
    warning_heading: str
    warning_text: str
    link_fallback_text: str
    closing_text: str
    signature_text: str


CONTENT_MODELS: Dict[EmailTemplateKey, Type[BaseModel]] = {
    EmailTemplateKey.WELCOME: WelcomeEmailContent,
    EmailTemplateKey.ARTICLE_NOTIFICATION: ArticleNotificationContent,
    EmailTemplateKey.WEEKLY_DIGEST: WeeklyDigestContent,
    EmailTemplateKey.DAILY_DIGEST: DailyDigestContent,
    EmailTemplateKey.PASSWORD_RESET: PasswordResetContent,
}


class EmailTemplateCreate(BaseModel):
    key: EmailTemplateKey
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    subject: str = Field(..., min_length=1)
    preview_text: str = Field(..., min_length=1)
    content: dict
    is_active: bool = True


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    subject: Optional[str] = None
    preview_text: Optional[str] = None
    content: Optional[dict] = None
    is_active: Optional[bool] = None


class EmailTemplateResponse(BaseModel):
    id: str
    key: EmailTemplateKey
    name: str
    description: Optional[str] = None
    subject: str
    preview_text: str
    content: dict
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EmailPreviewRequest(BaseModel):
    variables: Dict[str, str] = {}


class SendTestEmailRequest(BaseModel):
    recipient_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    variables: Dict[str, str] = {}


class SendTestEmailResponse(BaseModel):
    sent_to: str
    subject: str
    message_id: str


class RenderedEmail(BaseModel):
    """Ready-to-send email."""
    subject: str
    preview_text: str
    html: str
    text: str
