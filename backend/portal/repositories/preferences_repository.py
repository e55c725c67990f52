"""User, preference and system setting repositories."""

from typing import Iterable, List, Optional

from sqlalchemy import or_, select

from ..models import (
    EmailFrequency,
    SystemSetting,
    User,
    UserPreferenceCategory,
    UserPreferences,
)
from ..exceptions import UserNotFoundError
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user accounts."""

    model_class = User
    id_column = "user_id"
    not_found_error = UserNotFoundError

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()


class PreferencesRepository(BaseRepository[UserPreferences]):
    """Repository for per-user newsletter preferences."""

    model_class = UserPreferences

    def get_for_user(self, user_id: str) -> Optional[UserPreferences]:
        return self.db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()

    def create(self, user_id: str, all_categories: bool, email_frequency: EmailFrequency) -> UserPreferences:
        return super().create(
            user_id=user_id,
            all_categories=all_categories,
            email_frequency=email_frequency.value,
        )

    def category_ids(self, preferences_id: str) -> List[str]:
        return [
            row.category_id
            for row in self.db.query(UserPreferenceCategory.category_id)
            .filter(UserPreferenceCategory.preferences_id == preferences_id)
            .order_by(UserPreferenceCategory.created_at)
        ]

    def replace_categories(self, preferences_id: str, category_ids: Iterable[str]) -> None:
        """Delete-then-insert the explicit subscription set inside the caller's transaction."""
        self.db.query(UserPreferenceCategory).filter(
            UserPreferenceCategory.preferences_id == preferences_id
        ).delete(synchronize_session="fetch")
        self.db.add_all([
            UserPreferenceCategory(preferences_id=preferences_id, category_id=category_id)
            for category_id in dict.fromkeys(category_ids)
        ])
        self.db.flush()

    def subscribers(self, frequency: EmailFrequency, category_ids: Iterable[str]) -> List[User]:
        """Active users at ``frequency`` who follow every category or any of ``category_ids``."""
        ids = list(category_ids)
        matches = [UserPreferences.all_categories.is_(True)]
        if ids:
            matches.append(UserPreferences.id.in_(
                select(UserPreferenceCategory.preferences_id).where(
                    UserPreferenceCategory.category_id.in_(ids)
                )
            ))
        return (
            self.db.query(User)
            .join(UserPreferences, UserPreferences.user_id == User.user_id)
            .filter(
                User.is_active.is_(True),
                UserPreferences.email_frequency == frequency.value,
                or_(*matches),
            )
            .order_by(User.email)
            .all()
        )


class SystemSettingRepository(BaseRepository[SystemSetting]):
    """Key/value settings."""

    model_class = SystemSetting
    id_column = "key"

    def get_value(self, key: str) -> Optional[str]:
        setting = self.get_by_id_optional(key)
        return setting.value if setting else None

    def set_value(self, key: str, value: str, description: Optional[str] = None) -> SystemSetting:
        setting = self.get_by_id_optional(key)
        if setting is None:
            setting = SystemSetting(key=key, value=value, description=description)
            self.db.add(setting)
        else:
            setting.value = value
            if description is not None:
                setting.description = description
        self.db.flush()
        return setting
