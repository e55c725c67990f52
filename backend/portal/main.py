"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api import (
    admin_articles_router,
    admin_categories_router,
    admin_settings_router,
    articles_router,
    categories_router,
    email_router,
    email_templates_router,
    preferences_router,
    prompts_router,
)
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import setup_logging
from .database import DATABASE_URL, get_db, init_db, is_sqlite, session_scope
from .exceptions import PortalException
from .middleware.exception_handler import database_exception_handler, portal_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .models.article import Article

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _mask_url(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the portal API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and not settings.auth_enabled:
        logger.warning(
            "SECURITY: Authentication is disabled (AUTH_ENABLED=false). "
            "Every request is treated as an admin. Set AUTH_ENABLED=true for production."
        )

    logger.info(f"Connecting to database: {_mask_url(DATABASE_URL)}")
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.critical(f"Database initialisation failed: {e}")
        raise SystemExit(1) from e

    if settings.seed_on_startup:
        from .core.seeder import seed_reference_data

        try:
            with session_scope() as db:
                seed_reference_data(db)
        except SQLAlchemyError as e:
            logger.warning(f"Seeding failed (non-fatal): {e}")

    if not settings.is_mail_configured():
        logger.warning("Mailgun is not configured; newsletter delivery is disabled")

    yield


app = FastAPI(
    title="Lokale Portalen API",
    description=(
        "News and CMS backend for Lokale Portalen: published articles with a "
        "paywall preview, categories, newsletter preferences, and admin tools "
        "for articles, AI prompts and email templates.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, user and admin endpoints require a "
        "`Bearer` token. Article pages accept tokens optionally and show a preview without one."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# Middleware stack (outermost first: CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(PortalException, portal_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

logger.info(
    "Portal API started | env=%s | db=%s | auth=%s",
    settings.environment.value,
    "SQLite" if is_sqlite() else "PostgreSQL",
    "enabled" if settings.auth_enabled else "disabled",
)

for router in (
    articles_router,
    categories_router,
    preferences_router,
    email_router,
    admin_articles_router,
    admin_categories_router,
    prompts_router,
    email_templates_router,
    admin_settings_router,
):
    app.include_router(router)


@app.get("/")
def root():
    """Root endpoint."""
    return {"name": "Lokale Portalen API", "version": VERSION, "status": "running"}


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database status, uptime and article count.

    Never raises; a database failure reports ``degraded`` so load balancers
    can keep polling without receiving 5xx.
    """
    db_status = "ok"
    article_count = 0
    try:
        article_count = db.query(func.count(Article.id)).scalar() or 0
    except SQLAlchemyError:
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": VERSION,
        "article_count": article_count,
    }
