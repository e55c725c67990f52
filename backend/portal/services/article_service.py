"""Article service - deep module for the article lifecycle.

Owns article CRUD together with category membership, the public listing
with its page window, and preview gating for anonymous readers. Every
write resolves categories first and commits article fields and membership
in one transaction.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import ArticleNotFoundError, SlugConflictError, ValidationError
from ..models import Article, ArticleStatus, Category
from ..repositories import ArticleRepository
from ..schemas.article import (
    ArticleCreate,
    ArticleListItem,
    ArticlePageResponse,
    ArticleResponse,
    ArticlePreviewResponse,
    ArticleUpdate,
    PageWindowResponse,
    PublicArticleResponse,
)
from ..schemas.category import CategoryResponse
from .category_service import CategoryService
from .content_utils import (
    generate_content_preview,
    get_content_preview,
    get_extended_preview,
    normalize_article_headings,
    slugify,
)
from .pagination import build_page_window, page_offset, total_pages

logger = logging.getLogger(__name__)

RELATED_ARTICLES_LIMIT = 3


class ArticleService:
    """Article CRUD, listing and reader-facing views."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ArticleRepository(db)
        self.categories = CategoryService(db)

    # -- helpers ----------------------------------------------------------

    def unique_slug(self, title: str) -> str:
        """Slug for ``title``, suffixed with -2, -3, ... until unused."""
        base = slugify(title) or "artikel"
        slug, counter = base, 2
        while self.repo.slug_exists(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def _to_response(self, article: Article, categories: Optional[List[Category]] = None) -> ArticleResponse:
        if categories is None:
            categories = self.categories.get_article_categories(article.id)
        return ArticleResponse(
            id=article.id,
            title=article.title,
            slug=article.slug,
            content=article.content,
            summary=article.summary,
            meta_description=article.meta_description,
            image=article.image,
            source_url=article.source_url,
            status=article.status,
            published_date=article.published_date,
            prompt_id=article.prompt_id,
            created_at=article.created_at,
            updated_at=article.updated_at,
            categories=[CategoryResponse.model_validate(c) for c in categories],
        )

    def _to_list_items(self, articles: List[Article]) -> List[ArticleListItem]:
        by_article = self.categories.get_article_categories_bulk([a.id for a in articles])
        return [
            ArticleListItem(
                id=article.id,
                title=article.title,
                slug=article.slug,
                summary=article.summary,
                image=article.image,
                status=article.status,
                published_date=article.published_date,
                content_preview=generate_content_preview(article.content),
                categories=[CategoryResponse.model_validate(c) for c in by_article.get(article.id, [])],
            )
            for article in articles
        ]

    # -- admin ------------------------------------------------------------

    def create_article(self, data: ArticleCreate) -> ArticleResponse:
        """Create an article with its categories.

        Raises:
            UnknownCategoriesError: If any category does not resolve (nothing is written).
            SlugConflictError: If the slug is taken.
        """
        category_ids = self.categories.require_category_ids(data.categories)

        slug = slugify(data.slug) if data.slug else slugify(data.title)
        if not slug:
            raise ValidationError("Slug cannot be empty", field="slug")
        if self.repo.slug_exists(slug):
            raise SlugConflictError(slug)

        try:
            article = self.repo.create(
                title=data.title,
                slug=slug,
                content=data.content,
                summary=data.summary,
                meta_description=data.meta_description,
                image=data.image,
                source_url=data.source_url,
                status=data.status.value,
                prompt_id=data.prompt_id,
            )
            self.categories.replace_article_categories(article.id, category_ids, commit=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            "Created article %s", slug,
            extra={"article_id": article.id, "status": data.status.value, "categories": len(category_ids)},
        )
        return self._to_response(self.repo.get_by_id(article.id))

    def update_article(self, article_id: str, data: ArticleUpdate) -> ArticleResponse:
        """Apply a partial update. ``categories`` replaces the set when given."""
        article = self.repo.get_by_id(article_id)
        fields = data.model_dump(exclude_unset=True)

        category_ids = None
        categories = fields.pop("categories", None)
        if categories is not None:
            category_ids = self.categories.require_category_ids(categories)

        if "slug" in fields:
            slug = slugify(fields["slug"] or "")
            if not slug:
                raise ValidationError("Slug cannot be empty", field="slug")
            if self.repo.slug_exists(slug, exclude_id=article_id):
                raise SlugConflictError(slug)
            fields["slug"] = slug

        for name in ("title", "content"):
            if name in fields and not (fields[name] or "").strip():
                raise ValidationError(f"{name.capitalize()} cannot be empty", field=name)

        if "status" in fields and fields["status"] is None:
            raise ValidationError("Status cannot be empty", field="status")

        status = fields.get("status")
        if status is not None:
            fields["status"] = status.value
            if status == ArticleStatus.PUBLISHED and not article.is_published:
                fields["published_date"] = datetime.now(timezone.utc)

        try:
            self.repo.update(article, **fields)
            if category_ids is not None:
                self.categories.replace_article_categories(article_id, category_ids, commit=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return self._to_response(self.repo.get_by_id(article_id))

    def delete_article(self, article_id: str) -> None:
        self.repo.delete(article_id)
        self.db.commit()
        logger.info("Deleted article", extra={"article_id": article_id})

    def get_article(self, article_id: str) -> ArticleResponse:
        return self._to_response(self.repo.get_by_id(article_id))

    def list_all(self, search: Optional[str] = None, status: Optional[ArticleStatus] = None) -> List[ArticleListItem]:
        return self._to_list_items(self.repo.list_all(search=search, status=status))

    # -- public -----------------------------------------------------------

    def list_published(
        self,
        page: int = 1,
        per_page: Optional[int] = None,
        category_slug: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ArticlePageResponse:
        """One page of published articles with its page window.

        An unknown category slug yields an empty page.
        """
        per_page = per_page or settings.articles_per_page
        page = max(page, 1)

        articles: List[Article] = []
        total = 0
        category = self.categories.get_by_slug(category_slug) if category_slug else None
        if category_slug is None or category is not None:
            articles, total = self.repo.list_published(
                offset=page_offset(page, per_page),
                limit=per_page,
                category_id=category.id if category else None,
                search=search,
            )

        window = build_page_window(page, total_pages(total, per_page))
        return ArticlePageResponse(
            articles=self._to_list_items(articles),
            total_items=total,
            pagination=PageWindowResponse(
                pages=window.pages,
                current=window.current,
                total=window.total,
                has_previous=window.has_previous,
                has_next=window.has_next,
            ),
        )

    def get_public_article(self, slug: str, full_access: bool) -> PublicArticleResponse:
        """Published article by slug.

        Readers without full access get the paywall preview and
        ``is_preview=True``.

        Raises:
            ArticleNotFoundError: If no published article has this slug.
        """
        article = self.repo.get_by_slug(slug, published_only=True)
        if article is None:
            raise ArticleNotFoundError(slug)

        if full_access:
            content = normalize_article_headings(article.content)
        else:
            content = get_content_preview(article.content, settings.preview_max_chars)

        return PublicArticleResponse(
            id=article.id,
            title=article.title,
            slug=article.slug,
            content=content,
            summary=article.summary,
            meta_description=article.meta_description,
            image=article.image,
            published_date=article.published_date,
            categories=[
                CategoryResponse.model_validate(c)
                for c in self.categories.get_article_categories(article.id)
            ],
            is_preview=not full_access,
        )

    def preview_article(self, article_id: str, percentage: float) -> ArticlePreviewResponse:
        """Fixed-budget preview next to the percentage-based one, for any status."""
        article = self.repo.get_by_id(article_id)
        return ArticlePreviewResponse(
            preview=get_content_preview(article.content, settings.preview_max_chars),
            extended_preview=get_extended_preview(article.content, percentage),
            total_chars=len(normalize_article_headings(article.content.strip())),
            percentage=percentage,
        )

    def related_articles(self, article_id: str, limit: int = RELATED_ARTICLES_LIMIT) -> List[ArticleListItem]:
        article = self.repo.get_by_id(article_id)
        return self._to_list_items(self.repo.related(article, limit=limit))

