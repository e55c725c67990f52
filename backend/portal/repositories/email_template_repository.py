"""Email template repository."""

from typing import Optional

from ..models import EmailTemplate
from ..exceptions import EmailTemplateNotFoundError
from .base import BaseRepository


class EmailTemplateRepository(BaseRepository[EmailTemplate]):
    """Repository for email template CRUD."""

    model_class = EmailTemplate
    not_found_error = EmailTemplateNotFoundError
    default_order = "key"

    def get_by_key(self, key: str, active_only: bool = False) -> Optional[EmailTemplate]:
        query = self.db.query(EmailTemplate).filter(EmailTemplate.key == key)
        if active_only:
            query = query.filter(EmailTemplate.is_active.is_(True))
        return query.first()
