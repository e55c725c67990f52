"""User, preference and system setting models."""

import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import EmailFrequency, UserRole


class User(Base):
    """Reader or administrator account."""

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    preferences = relationship(
        "UserPreferences",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )


class UserPreferences(Base):
    """Newsletter subscription settings, one row per user."""

    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True)

    # True means "every category"; the explicit set below is then ignored.
    all_categories = Column(Boolean, nullable=False, default=True)
    # Allowed values: EmailFrequency
    email_frequency = Column(String(20), nullable=False, default=EmailFrequency.WEEKLY.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="preferences")
    category_links = relationship(
        "UserPreferenceCategory",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserPreferenceCategory(Base):
    """Explicit category subscription."""

    __tablename__ = "user_preference_categories"

    preferences_id = Column(
        String(36), ForeignKey("user_preferences.id", ondelete="CASCADE"), primary_key=True
    )
    category_id = Column(
        String(36), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SystemSetting(Base):
    """Key/value runtime setting editable from the admin dashboard."""

    __tablename__ = "system_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
