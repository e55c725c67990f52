"""Shared test fixtures for the portal backend test suite.

Tests run against a throwaway SQLite file. Tables are created once from
the model metadata; every test starts from empty tables. Auth is off
unless a test turns it on with the ``auth_on`` fixture.
"""

import os
import tempfile

# Configure the app before any portal imports.
_DB_DIR = tempfile.mkdtemp(prefix="portal-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'portal_test.db')}"
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["LLM_MODEL"] = ""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from portal.api.prompts import prompt_cache
from portal.core.config import settings
from portal.core.token_factory import create_token
from portal.database import Base, SessionLocal, engine, get_db, init_db
from portal.main import app
from portal.models import (
    Article,
    ArticleCategory,
    ArticleStatus,
    Category,
    EmailFrequency,
    User,
    UserPreferenceCategory,
    UserPreferences,
    UserRole,
)
from portal.services.content_utils import slugify

init_db()


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test.

    Runs before the test (not after) so a failing test leaves its data
    behind for debugging.
    """
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    prompt_cache.clear()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_on(monkeypatch):
    """Enable token authentication for the duration of a test."""
    monkeypatch.setattr(settings, "auth_enabled", True)


def token_headers(user_id: str, role: str = UserRole.USER.value) -> dict:
    token = create_token(subject=user_id, role=role, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_category(db):
    """Factory: persist a category by name."""

    def _make(name: str, **fields) -> Category:
        category = Category(name=name, slug=fields.pop("slug", slugify(name)), **fields)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture()
def make_article(db):
    """Factory: persist an article, optionally linked to categories in order."""

    def _make(
        title: str = "Test artikel",
        content: str = "Første afsnit.\n\nAndet afsnit.",
        status: ArticleStatus = ArticleStatus.PUBLISHED,
        categories=(),
        published_date: datetime = None,
        **fields,
    ) -> Article:
        article = Article(
            title=title,
            slug=fields.pop("slug", slugify(title)),
            content=content,
            status=status.value,
            published_date=published_date or datetime.now(timezone.utc),
            **fields,
        )
        db.add(article)
        db.flush()
        for position, category in enumerate(categories):
            db.add(ArticleCategory(article_id=article.id, category_id=category.id, position=position))
        db.commit()
        db.refresh(article)
        return article

    return _make


@pytest.fixture()
def make_user(db):
    """Factory: persist a user with optional newsletter preferences."""

    def _make(
        email: str,
        role: UserRole = UserRole.USER,
        frequency: EmailFrequency = None,
        all_categories: bool = True,
        categories=(),
        **fields,
    ) -> User:
        user = User(email=email, name=fields.pop("name", email.split("@")[0]), role=role.value, **fields)
        db.add(user)
        db.flush()
        if frequency is not None:
            prefs = UserPreferences(
                user_id=user.user_id,
                all_categories=all_categories,
                email_frequency=frequency.value,
            )
            db.add(prefs)
            db.flush()
            for category in categories:
                db.add(UserPreferenceCategory(preferences_id=prefs.id, category_id=category.id))
        db.commit()
        db.refresh(user)
        return user

    return _make
