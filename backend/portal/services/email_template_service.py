"""Email template service: editable copy plus rendering to HTML and text.

The stored ``content`` JSON carries the wording of one email; the layout of
each template key lives here. Rendering substitutes ``{placeholder}``
tokens (``{userName}``, ``{weekStart}``, ...) in subject, preview text and
every content field.
"""

import html
import json
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import EmailTemplateNotFoundError, ServiceUnavailableError, ValidationError
from ..models import EmailTemplate, EmailTemplateKey
from ..repositories import EmailTemplateRepository
from ..schemas.email_template import (
    CONTENT_MODELS,
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    RenderedEmail,
    SendTestEmailResponse,
)
from .mail_client import MailClient, MailDeliveryError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

# (kind, source): source is a content field name, or a literal template
# when the content has no such field. Kinds: heading, p, small, cta:<urlVar>,
# articles (digest list).
Layout = Sequence[Tuple[str, str]]

DIGEST_LAYOUT: Layout = (
    ("heading", "heading"),
    ("p", "greeting"),
    ("p", "intro_paragraph"),
    ("articles", "article_cta_text"),
    ("cta:articlesUrl", "final_cta_text"),
    ("small", "footer_text"),
)

LAYOUTS: Dict[EmailTemplateKey, Layout] = {
    EmailTemplateKey.WELCOME: (
        ("heading", "heading"),
        ("p", "greeting"),
        ("p", "intro_paragraph"),
        ("p", "description_paragraph"),
        ("cta:articlesUrl", "primary_cta_text"),
        ("p", "preferences_info_paragraph"),
        ("cta:preferencesUrl", "secondary_cta_text"),
        ("p", "closing_text"),
        ("p", "signature_text"),
    ),
    EmailTemplateKey.ARTICLE_NOTIFICATION: (
        ("heading", "{articleTitle}"),
        ("small", "{categoryName}"),
        ("p", "{articleSummary}"),
        ("cta:articleUrl", "primary_cta_text"),
        ("small", "footer_text"),
    ),
    EmailTemplateKey.WEEKLY_DIGEST: DIGEST_LAYOUT,
    EmailTemplateKey.DAILY_DIGEST: DIGEST_LAYOUT,
    EmailTemplateKey.PASSWORD_RESET: (
        ("heading", "heading"),
        ("p", "greeting"),
        ("p", "request_paragraph"),
        ("p", "instructions_paragraph"),
        ("cta:resetUrl", "primary_cta_text"),
        ("subheading", "warning_heading"),
        ("p", "warning_text"),
        ("small", "link_fallback_text"),
        ("small", "{resetUrl}"),
        ("p", "closing_text"),
        ("p", "signature_text"),
    ),
}

DIGEST_KEYS = frozenset({EmailTemplateKey.WEEKLY_DIGEST, EmailTemplateKey.DAILY_DIGEST})

# Keys whose emails carry an unsubscribe footer.
_NEWSLETTER_KEYS = DIGEST_KEYS | {EmailTemplateKey.ARTICLE_NOTIFICATION}

SAMPLE_VARIABLES: Dict[EmailTemplateKey, Dict[str, str]] = {
    EmailTemplateKey.WELCOME: {"userName": "Jens Hansen"},
    EmailTemplateKey.ARTICLE_NOTIFICATION: {
        "articleTitle": "Nyt erhvervsejendomsprojekt i København",
        "articleSummary": "En ny udvikling på 50.000 kvadratmeter kontorplads åbner i 2026.",
        "articleUrl": "{publicUrl}/nyheder/eksempel",
        "categoryName": "Kontor",
    },
    EmailTemplateKey.WEEKLY_DIGEST: {"userName": "Jens Hansen", "weekStart": "4. dec", "weekEnd": "10. dec"},
    EmailTemplateKey.DAILY_DIGEST: {"userName": "Jens Hansen", "date": "10. dec"},
    EmailTemplateKey.PASSWORD_RESET: {
        "userName": "Jens Hansen",
        "resetUrl": "{publicUrl}/nulstil-adgangskode?token=eksempel",
        "expirationMinutes": "60",
    },
}


@dataclass(frozen=True)
class DigestArticle:
    """One entry in a digest list."""
    title: str
    summary: str
    url: str
    category_name: str = ""


def substitute(text: str, variables: Dict[str, str]) -> str:
    """Replace ``{name}`` tokens; unknown names are left as they are."""
    return _PLACEHOLDER.sub(
        lambda m: str(variables[m.group(1)]) if m.group(1) in variables else m.group(0),
        text,
    )


def default_variables() -> Dict[str, str]:
    base = settings.public_app_url.rstrip("/")
    return {
        "publicUrl": base,
        "articlesUrl": f"{base}/nyheder",
        "preferencesUrl": f"{base}/profile/preferences",
        "unsubscribeUrl": f"{base}/profile/preferences?unsubscribe=1",
    }


class EmailTemplateService:
    """CRUD for email templates and rendering of ready-to-send emails."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EmailTemplateRepository(db)

    # -- content validation -----------------------------------------------

    @staticmethod
    def validate_content(key: EmailTemplateKey, content) -> dict:
        """Validate content (dict or JSON string) against the model for ``key``.

        Raises:
            ValidationError: On malformed JSON or missing/invalid fields.
        """
        if isinstance(content, str):
            try:
                content = json.loads(content)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Content is not valid JSON: {e.msg}", field="content") from e
        if not isinstance(content, dict):
            raise ValidationError("Content must be a JSON object", field="content")

        try:
            model = CONTENT_MODELS[key].model_validate(content)
        except PydanticValidationError as e:
            missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValidationError(f"Invalid content for template '{key.value}': {missing}", field="content") from e
        return model.model_dump()

    @staticmethod
    def to_response(template: EmailTemplate) -> EmailTemplateResponse:
        return EmailTemplateResponse(
            id=template.id,
            key=template.key,
            name=template.name,
            description=template.description,
            subject=template.subject,
            preview_text=template.preview_text,
            content=json.loads(template.content),
            is_active=template.is_active,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )

    # -- CRUD -------------------------------------------------------------

    def list_templates(self) -> List[EmailTemplate]:
        return self.repo.get_all()

    def get_template(self, template_id: str) -> EmailTemplate:
        return self.repo.get_by_id(template_id)

    def create_template(self, data: EmailTemplateCreate) -> EmailTemplate:
        if self.repo.get_by_key(data.key.value) is not None:
            raise ValidationError(f"A template with key '{data.key.value}' already exists", field="key")
        content = self.validate_content(data.key, data.content)
        template = self.repo.create(
            key=data.key.value,
            name=data.name,
            description=data.description,
            subject=data.subject,
            preview_text=data.preview_text,
            content=json.dumps(content, ensure_ascii=False),
            is_active=data.is_active,
        )
        self.db.commit()
        logger.info("Created email template %s", template.key)
        return template

    def update_template(self, template_id: str, data: EmailTemplateUpdate) -> EmailTemplate:
        template = self.repo.get_by_id(template_id)
        fields = data.model_dump(exclude_unset=True)

        if "content" in fields and fields["content"] is not None:
            content = self.validate_content(EmailTemplateKey(template.key), fields.pop("content"))
            template.content = json.dumps(content, ensure_ascii=False)
        fields.pop("content", None)

        for name in ("name", "subject", "preview_text"):
            if name in fields and not (fields[name] or "").strip():
                raise ValidationError(f"{name} cannot be empty", field=name)

        for name, value in fields.items():
            setattr(template, name, value)

        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: str) -> None:
        self.repo.delete(template_id)
        self.db.commit()

    # -- rendering --------------------------------------------------------

    def render(
        self,
        key: EmailTemplateKey,
        variables: Optional[Dict[str, str]] = None,
        articles: Optional[List[DigestArticle]] = None,
    ) -> RenderedEmail:
        """Render the active template for ``key``.

        Raises:
            EmailTemplateNotFoundError: If no active template exists for the key.
        """
        template = self.repo.get_by_key(key.value, active_only=True)
        if template is None:
            raise EmailTemplateNotFoundError(key.value)
        return self.render_template(template, variables, articles)

    def render_template(
        self,
        template: EmailTemplate,
        variables: Optional[Dict[str, str]] = None,
        articles: Optional[List[DigestArticle]] = None,
    ) -> RenderedEmail:
        key = EmailTemplateKey(template.key)
        values = default_variables()
        values.update(variables or {})
        content = json.loads(template.content)

        html_parts: List[str] = []
        text_parts: List[str] = []

        for kind, source in LAYOUTS[key]:
            if kind == "articles":
                self._render_articles(content, source, values, articles or [], html_parts, text_parts)
                continue

            raw = content.get(source, source if "{" in source else "")
            text = substitute(raw, values).strip()
            if not text or _PLACEHOLDER.fullmatch(text):
                continue

            escaped = html.escape(text)
            if kind == "heading":
                html_parts.append(f"<h1>{escaped}</h1>")
                text_parts.append(text)
            elif kind == "subheading":
                html_parts.append(f"<h3>{escaped}</h3>")
                text_parts.append(text)
            elif kind == "small":
                html_parts.append(f'<p class="small">{escaped}</p>')
                text_parts.append(text)
            elif kind.startswith("cta:"):
                url = values.get(kind[4:], "")
                html_parts.append(f'<a class="button" href="{html.escape(url, quote=True)}">{escaped}</a>')
                text_parts.append(f"{text}: {url}")
            else:
                html_parts.append(f"<p>{escaped}</p>")
                text_parts.append(text)

        if key in _NEWSLETTER_KEYS:
            unsubscribe = values["unsubscribeUrl"]
            html_parts.append(
                f'<p class="footer"><a href="{html.escape(unsubscribe, quote=True)}">Afmeld nyhedsbrev</a></p>'
            )
            text_parts.append(f"Afmeld nyhedsbrev: {unsubscribe}")

        return RenderedEmail(
            subject=substitute(template.subject, values),
            preview_text=substitute(template.preview_text, values),
            html=_wrap_html("\n".join(html_parts)),
            text="\n\n".join(text_parts),
        )

    @staticmethod
    def _render_articles(content, cta_field, values, articles, html_parts, text_parts) -> None:
        if not articles:
            message = substitute(content.get("no_articles_message", ""), values)
            if message:
                html_parts.append(f"<p>{html.escape(message)}</p>")
                text_parts.append(message)
            return

        cta = substitute(content.get(cta_field, ""), values)
        for article in articles:
            html_parts.append(
                '<div class="article">'
                + (f'<p class="small">{html.escape(article.category_name)}</p>' if article.category_name else "")
                + f"<h2>{html.escape(article.title)}</h2>"
                + f"<p>{html.escape(article.summary)}</p>"
                + f'<a href="{html.escape(article.url, quote=True)}">{html.escape(cta)}</a>'
                + "</div>"
            )
            text_parts.append(f"{article.title}\n{article.summary}\n{cta}: {article.url}")

    def preview(self, template_id: str, variables: Optional[Dict[str, str]] = None) -> RenderedEmail:
        """Render a template (active or not) with sample data, overridden by ``variables``."""
        template = self.repo.get_by_id(template_id)
        key = EmailTemplateKey(template.key)
        base = default_variables()
        sample = {name: substitute(value, base) for name, value in SAMPLE_VARIABLES[key].items()}
        sample.update(variables or {})

        articles = None
        if key in DIGEST_KEYS:
            articles = [
                DigestArticle(
                    title="Nyt kontorbyggeri i Aarhus",
                    summary="Et moderne kontorbyggeri på 25.000 kvadratmeter står klar til indflytning.",
                    url=f"{base['articlesUrl']}/nyt-kontorbyggeri-i-aarhus",
                    category_name="Kontor",
                ),
            ]
        return self.render_template(template, sample, articles)

    def send_test(
        self,
        template_id: str,
        recipient: str,
        variables: Optional[Dict[str, str]] = None,
        mail_client: Optional[MailClient] = None,
    ) -> SendTestEmailResponse:
        """Send the sample rendering of a template to one address, subject prefixed with [TEST].

        Raises:
            EmailTemplateNotFoundError: If the template does not exist.
            ServiceUnavailableError: If Mailgun is not configured or rejects the message.
        """
        email = self.preview(template_id, variables)
        subject = f"[TEST] {email.subject}"
        try:
            message_id = (mail_client or MailClient()).send(recipient, subject, email.text, email.html)
        except MailDeliveryError as e:
            logger.error("Test email failed", extra={"template_id": template_id, "to": recipient})
            raise ServiceUnavailableError("mailgun", f"Test email could not be sent: {e}") from e

        logger.info("Sent test email", extra={"template_id": template_id, "to": recipient})
        return SendTestEmailResponse(sent_to=recipient, subject=subject, message_id=message_id)


def _wrap_html(body: str) -> str:
    return (
        "<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\"></head>\n"
        "<body>\n<div class=\"container\">\n"
        f"{body}\n"
        "</div>\n</body>\n</html>"
    )
