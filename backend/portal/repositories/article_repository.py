"""Article repository for database operations."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Query

from ..models import Article, ArticleCategory, ArticleStatus, Category
from ..exceptions import ArticleNotFoundError
from .base import BaseRepository


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ArticleRepository(BaseRepository[Article]):
    """Repository for article CRUD and listing queries."""

    model_class = Article
    not_found_error = ArticleNotFoundError

    def update(self, article: Article, **fields) -> Article:
        for name, value in fields.items():
            setattr(article, name, value)
        self.db.flush()
        self.db.refresh(article)
        return article

    def get_by_slug(self, slug: str, published_only: bool = False) -> Optional[Article]:
        query = self.db.query(Article).filter(Article.slug == slug)
        if published_only:
            query = query.filter(Article.status == ArticleStatus.PUBLISHED.value)
        return query.first()

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Article.id).filter(Article.slug == slug)
        if exclude_id:
            query = query.filter(Article.id != exclude_id)
        return query.first() is not None

    def _apply_search(self, query: Query, search: Optional[str]) -> Query:
        """Case-insensitive match on every whitespace-separated term.

        A term matches if it occurs in the title, summary or content, or in
        the name of one of the article's categories.
        """
        if not search:
            return query
        for term in search.split():
            pattern = f"%{_escape_like(term)}%"
            category_match = Article.id.in_(
                select(ArticleCategory.article_id)
                .join(Category, Category.id == ArticleCategory.category_id)
                .where(Category.name.ilike(pattern, escape="\\"))
            )
            query = query.filter(or_(
                Article.title.ilike(pattern, escape="\\"),
                Article.summary.ilike(pattern, escape="\\"),
                Article.content.ilike(pattern, escape="\\"),
                category_match,
            ))
        return query

    def list_published(
        self,
        offset: int = 0,
        limit: int = 12,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Article], int]:
        """Published articles, newest first, with the unpaginated total."""
        query = self.db.query(Article).filter(Article.status == ArticleStatus.PUBLISHED.value)
        if category_id:
            query = query.filter(Article.id.in_(
                select(ArticleCategory.article_id).where(
                    ArticleCategory.category_id == category_id
                )
            ))
        query = self._apply_search(query, search)

        total = query.count()
        articles = (
            query.order_by(Article.published_date.desc(), Article.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return articles, total

    def list_all(self, search: Optional[str] = None, status: Optional[ArticleStatus] = None) -> List[Article]:
        """Every article regardless of status, newest first (admin listing)."""
        query = self.db.query(Article)
        if status is not None:
            query = query.filter(Article.status == status.value)
        query = self._apply_search(query, search)
        return query.order_by(Article.created_at.desc()).all()

    def list_published_since(self, since: datetime, until: Optional[datetime] = None) -> List[Article]:
        query = self.db.query(Article).filter(
            Article.status == ArticleStatus.PUBLISHED.value,
            Article.published_date >= since,
        )
        if until is not None:
            query = query.filter(Article.published_date < until)
        return query.order_by(Article.published_date.desc()).all()

    def related(self, article: Article, limit: int = 3) -> List[Article]:
        """Other published articles sharing at least one category, newest first."""
        category_ids = select(ArticleCategory.category_id).where(
            ArticleCategory.article_id == article.id
        )
        return (
            self.db.query(Article)
            .filter(
                Article.status == ArticleStatus.PUBLISHED.value,
                Article.id != article.id,
                Article.id.in_(
                    select(ArticleCategory.article_id).where(
                        ArticleCategory.category_id.in_(category_ids)
                    )
                ),
            )
            .order_by(Article.published_date.desc())
            .limit(limit)
            .all()
        )
