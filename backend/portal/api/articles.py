"""Article endpoints.

Public routes only ever expose published articles; anonymous readers get
the paywall preview. Admin routes cover the full lifecycle.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_admin
from ..database import get_db
from ..models import ArticleStatus
from ..schemas.article import (
    ArticleCreate,
    ArticleListItem,
    ArticlePageResponse,
    ArticlePreviewResponse,
    ArticleResponse,
    ArticleUpdate,
    PublicArticleResponse,
)
from ..services import ArticleService, NotificationService
from ..services.content_utils import DEFAULT_EXTENDED_PERCENTAGE

router = APIRouter(prefix="/api/articles", tags=["articles"])
admin_router = APIRouter(prefix="/api/admin/articles", tags=["admin"])


@router.get("", response_model=ArticlePageResponse)
def list_articles(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    category: Optional[str] = Query(None, description="Category slug"),
    search: Optional[str] = Query(None, max_length=200),
    db: Session = Depends(get_db),
):
    """One page of published articles, newest first."""
    return ArticleService(db).list_published(page=page, per_page=per_page, category_slug=category, search=search)


@router.get("/slug/{slug}", response_model=PublicArticleResponse)
def get_article_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Published article; full text for signed-in readers, preview otherwise."""
    return ArticleService(db).get_public_article(slug, full_access=auth.authenticated)


@router.get("/{article_id}/related", response_model=List[ArticleListItem])
def get_related_articles(
    article_id: str,
    limit: int = Query(3, ge=1, le=12),
    db: Session = Depends(get_db),
):
    return ArticleService(db).related_articles(article_id, limit=limit)


# --- admin ---


@admin_router.get("", response_model=List[ArticleListItem])
def admin_list_articles(
    search: Optional[str] = None,
    status: Optional[ArticleStatus] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Every article regardless of status."""
    return ArticleService(db).list_all(search=search, status=status)


@admin_router.post("", response_model=ArticleResponse, status_code=201)
def create_article(
    data: ArticleCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return ArticleService(db).create_article(data)


@admin_router.get("/{article_id}", response_model=ArticleResponse)
def get_article(
    article_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return ArticleService(db).get_article(article_id)


@admin_router.get("/{article_id}/preview", response_model=ArticlePreviewResponse)
def preview_article(
    article_id: str,
    percentage: float = Query(DEFAULT_EXTENDED_PERCENTAGE, gt=0, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Paywall preview and extended preview as anonymous readers would get them."""
    return ArticleService(db).preview_article(article_id, percentage)


@admin_router.put("/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: str,
    data: ArticleUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return ArticleService(db).update_article(article_id, data)


@admin_router.delete("/{article_id}", status_code=204)
def delete_article(
    article_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    ArticleService(db).delete_article(article_id)


@admin_router.post("/{article_id}/notify")
def notify_subscribers(
    article_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Email the article to subscribers who want new articles immediately."""
    report = NotificationService(db).notify_article(article_id)
    return report.to_dict()
