"""Newsletter delivery: per-article notifications and the daily and weekly digests.

Recipients are chosen from user preferences. Every email carries a
one-click unsubscribe link for its recipient. Delivery goes through a
MailClient; a failure for one recipient is logged and counted and never
stops the rest of the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import EmailTemplateNotFoundError, ValidationError
from ..models import Article, Category, EmailFrequency, EmailTemplateKey, User
from ..repositories import ArticleRepository, CategoryRepository, PreferencesRepository
from .email_template_service import DigestArticle, EmailTemplateService
from .mail_client import MailClient, MailDeliveryError
from .preferences_service import unsubscribe_url

logger = logging.getLogger(__name__)

DIGEST_PERIOD = timedelta(days=7)
DAILY_DIGEST_LIMIT = 10

_DANISH_MONTHS = ("jan", "feb", "mar", "apr", "maj", "jun", "jul", "aug", "sep", "okt", "nov", "dec")


def format_danish_date(value: datetime) -> str:
    """``4. dec`` style date used in digest copy."""
    return f"{value.day}. {_DANISH_MONTHS[value.month - 1]}"


@dataclass
class DeliveryReport:
    """Outcome of one send run."""
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    failures: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"sent": self.sent, "failed": self.failed, "skipped": self.skipped, "failures": self.failures}


class NotificationService:
    """Sends newsletter email to subscribed users."""

    def __init__(self, db: Session, mail_client: Optional[MailClient] = None):
        self.db = db
        self.articles = ArticleRepository(db)
        self.categories = CategoryRepository(db)
        self.preferences = PreferencesRepository(db)
        self.templates = EmailTemplateService(db)
        self.mail = mail_client or MailClient()

    def _article_url(self, article: Article) -> str:
        return f"{settings.public_app_url.rstrip('/')}/nyheder/{article.slug}"

    def recipients_for_article(self, article_id: str) -> List[User]:
        """Immediate subscribers interested in the article.

        Empty for articles that are not published.
        """
        article = self.articles.get_by_id(article_id)
        if not article.is_published:
            return []
        category_ids = [c.id for c in self.categories.get_for_article(article_id)]
        return self.preferences.subscribers(EmailFrequency.IMMEDIATE, category_ids)

    def _deliver(self, report: DeliveryReport, user: User, subject: str, text: str, html: str) -> None:
        try:
            self.mail.send(user.email, subject, text, html)
            report.sent += 1
        except MailDeliveryError as e:
            report.failed += 1
            report.failures.append(user.email)
            logger.error("Failed to send email", extra={"to": user.email, "error": str(e)})

    def notify_article(self, article_id: str) -> DeliveryReport:
        """Email a published article to its immediate subscribers.

        Raises:
            ValidationError: If the article is not published.
            EmailTemplateNotFoundError: If the notification template is missing or inactive.
            ServiceUnavailableError: If mail delivery is not configured.
        """
        article = self.articles.get_by_id(article_id)
        if not article.is_published:
            raise ValidationError("Only published articles can be sent to subscribers", field="status")

        categories = self.categories.get_for_article(article_id)
        recipients = self.recipients_for_article(article_id)
        report = DeliveryReport()

        for user in recipients:
            email = self.templates.render(
                EmailTemplateKey.ARTICLE_NOTIFICATION,
                {
                    "userName": user.name or user.email,
                    "unsubscribeUrl": unsubscribe_url(user.user_id),
                    "articleTitle": article.title,
                    "articleSummary": article.summary or "",
                    "articleUrl": self._article_url(article),
                    "categoryName": categories[0].name if categories else "",
                },
            )
            self._deliver(report, user, email.subject, email.text, email.html)

        logger.info(
            "Article notification run finished",
            extra={"article_id": article_id, "recipients": len(recipients), **report.to_dict()},
        )
        return report

    def send_weekly_digest(self, now: Optional[datetime] = None) -> DeliveryReport:
        """Send last week's published articles to weekly subscribers.

        Each user only gets articles in categories they follow. Users with
        nothing to read are skipped.
        """
        now = now or datetime.now(timezone.utc)
        since = now - DIGEST_PERIOD
        return self._send_digest(
            EmailFrequency.WEEKLY,
            EmailTemplateKey.WEEKLY_DIGEST,
            since,
            now,
            {"weekStart": format_danish_date(since), "weekEnd": format_danish_date(now)},
        )

    def send_daily_digest(self, now: Optional[datetime] = None) -> DeliveryReport:
        """Send articles published since the start of yesterday (UTC) to daily subscribers.

        Same per-user category filtering as the weekly digest, capped at
        DAILY_DIGEST_LIMIT articles per email.
        """
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return self._send_digest(
            EmailFrequency.DAILY,
            EmailTemplateKey.DAILY_DIGEST,
            since,
            now,
            {"date": format_danish_date(now)},
            limit=DAILY_DIGEST_LIMIT,
        )

    def _send_digest(
        self,
        frequency: EmailFrequency,
        key: EmailTemplateKey,
        since: datetime,
        until: datetime,
        variables: Dict[str, str],
        limit: Optional[int] = None,
    ) -> DeliveryReport:
        articles = self.articles.list_published_since(since, until=until)
        report = DeliveryReport()
        if not articles:
            logger.info("No articles for %s", key.value)
            return report

        by_article: Dict[str, List[Category]] = self.categories.get_for_articles([a.id for a in articles])
        category_ids = {c.id for cats in by_article.values() for c in cats}
        subscribers = self.preferences.subscribers(frequency, category_ids)

        for user in subscribers:
            prefs = user.preferences
            followed = None if prefs is None or prefs.all_categories else set(
                self.preferences.category_ids(prefs.id)
            )
            selected = [
                a for a in articles
                if followed is None or any(c.id in followed for c in by_article.get(a.id, []))
            ][:limit]
            if not selected:
                report.skipped += 1
                continue

            try:
                email = self.templates.render(
                    key,
                    {
                        **variables,
                        "userName": user.name or user.email,
                        "unsubscribeUrl": unsubscribe_url(user.user_id),
                    },
                    articles=[
                        DigestArticle(
                            title=a.title,
                            summary=a.summary or "",
                            url=self._article_url(a),
                            category_name=by_article[a.id][0].name if by_article.get(a.id) else "",
                        )
                        for a in selected
                    ],
                )
            except EmailTemplateNotFoundError:
                logger.error("Template %s missing or inactive, aborting digest run", key.value)
                raise
            self._deliver(report, user, email.subject, email.text, email.html)

        logger.info(
            "Digest run finished",
            extra={"template": key.value, "articles": len(articles), **report.to_dict()},
        )
        return report
