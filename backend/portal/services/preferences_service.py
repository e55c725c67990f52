"""Newsletter preferences for a user."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.token_factory import UNSUBSCRIBE_PURPOSE, create_token, decode_token
from ..exceptions import ValidationError
from ..models import EmailFrequency
from ..repositories import PreferencesRepository, UserRepository
from ..schemas.preferences import PreferencesResponse, PreferencesUpdate
from .category_service import CategoryService

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = EmailFrequency.WEEKLY

# Links in newsletters stay usable long after the email was sent.
UNSUBSCRIBE_TOKEN_HOURS = 24 * 90


def create_unsubscribe_token(user_id: str) -> str:
    return create_token(
        user_id, "", settings.jwt_secret_key, settings.jwt_algorithm,
        expires_hours=UNSUBSCRIBE_TOKEN_HOURS, purpose=UNSUBSCRIBE_PURPOSE,
    )


def unsubscribe_url(user_id: str) -> str:
    """One-click link that unsubscribes ``user_id`` without signing in."""
    base = settings.public_app_url.rstrip("/")
    return f"{base}/api/email/unsubscribe?token={create_unsubscribe_token(user_id)}"


class PreferencesService:
    """Read and replace a user's subscription settings.

    Users without a stored row get the defaults: every category, weekly.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = PreferencesRepository(db)
        self.users = UserRepository(db)
        self.categories = CategoryService(db)

    def get_preferences(self, user_id: str) -> PreferencesResponse:
        prefs = self.repo.get_for_user(user_id)
        if prefs is None:
            return PreferencesResponse(all_categories=True, categories=[], email_frequency=DEFAULT_FREQUENCY)
        return PreferencesResponse(
            all_categories=prefs.all_categories,
            categories=self.repo.category_ids(prefs.id),
            email_frequency=EmailFrequency(prefs.email_frequency),
        )

    def save_preferences(self, user_id: str, data: PreferencesUpdate) -> PreferencesResponse:
        """Upsert preferences. Category inputs are names or ids, all-or-nothing.

        Raises:
            UserNotFoundError: If the user does not exist.
            UnknownCategoriesError: If any category does not resolve.
        """
        self.users.get_by_id(user_id)
        category_ids = [] if data.all_categories else self.categories.require_category_ids(data.categories)

        try:
            prefs = self.repo.get_for_user(user_id)
            if prefs is None:
                prefs = self.repo.create(user_id, data.all_categories, data.email_frequency)
            else:
                prefs.all_categories = data.all_categories
                prefs.email_frequency = data.email_frequency.value
            self.repo.replace_categories(prefs.id, category_ids)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            "Saved preferences",
            extra={"user_id": user_id, "frequency": data.email_frequency.value, "categories": len(category_ids)},
        )
        return self.get_preferences(user_id)

    def unsubscribe(self, user_id: str) -> PreferencesResponse:
        """Stop all newsletter email, keeping the category selection."""
        self.users.get_by_id(user_id)
        prefs = self.repo.get_for_user(user_id)
        if prefs is None:
            self.repo.create(user_id, all_categories=True, email_frequency=EmailFrequency.NEVER)
        else:
            prefs.email_frequency = EmailFrequency.NEVER.value
        self.db.commit()
        logger.info("User unsubscribed", extra={"user_id": user_id})
        return self.get_preferences(user_id)

    def unsubscribe_with_token(self, token: Optional[str]) -> PreferencesResponse:
        """Unsubscribe the user named by a newsletter unsubscribe token.

        Raises:
            ValidationError: If the token is missing, expired or not an unsubscribe token.
            UserNotFoundError: If the user no longer exists.
        """
        if not token:
            raise ValidationError("Ugyldigt afmeldingslink", field="token")
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm, purpose=UNSUBSCRIBE_PURPOSE)
        if payload is None:
            raise ValidationError("Ugyldigt eller udløbet afmeldingslink", field="token")
        return self.unsubscribe(payload.sub)
