"""Category repository: category rows and article membership.

Reads and writes go straight to the store; any SQLAlchemy error propagates
to the caller unchanged.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func

from ..models import Article, ArticleCategory, ArticleStatus, Category
from ..exceptions import CategoryNotFoundError
from .base import BaseRepository

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


@dataclass
class CategoryResolution:
    """Outcome of resolving category names or ids.

    ``unknown`` holds the inputs that matched nothing, verbatim. Callers
    reject the whole operation when it is non-empty.
    """

    ids: List[str] = field(default_factory=list)
    unknown: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unknown


class CategoryRepository(BaseRepository[Category]):
    """Repository for categories and the article_categories join table."""

    model_class = Category
    not_found_error = CategoryNotFoundError
    default_order = "name"

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.slug == slug).first()

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Category.id).filter(Category.slug == slug)
        if exclude_id:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def name_exists(self, name: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Category.id).filter(func.lower(Category.name) == name.lower())
        if exclude_id:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def published_counts(self) -> Dict[str, int]:
        """Number of published articles per category id (categories without any are absent)."""
        rows = (
            self.db.query(ArticleCategory.category_id, func.count(ArticleCategory.article_id))
            .join(Article, Article.id == ArticleCategory.article_id)
            .filter(Article.status == ArticleStatus.PUBLISHED.value)
            .group_by(ArticleCategory.category_id)
            .all()
        )
        return {category_id: count for category_id, count in rows}

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_ids(self, inputs: List[str]) -> CategoryResolution:
        """Resolve category names or ids to persisted ids.

        When every input is UUID-shaped they are validated against existing
        rows with a single IN query. Otherwise inputs are treated as names
        and matched case-insensitively against the full table, loaded once.
        Resolved ids keep the input order.
        """
        if not inputs:
            return CategoryResolution()

        if all(is_uuid(value) for value in inputs):
            lowered = {value.lower() for value in inputs}
            found = {
                row.id.lower(): row.id
                for row in self.db.query(Category.id).filter(
                    func.lower(Category.id).in_(sorted(lowered))
                )
            }
            resolution = CategoryResolution()
            for value in inputs:
                category_id = found.get(value.lower())
                if category_id:
                    resolution.ids.append(category_id)
                else:
                    resolution.unknown.append(value)
            return resolution

        name_to_id = {
            name.lower(): category_id
            for category_id, name in self.db.query(Category.id, Category.name)
        }
        resolution = CategoryResolution()
        for value in inputs:
            category_id = name_to_id.get(value.strip().lower())
            if category_id:
                resolution.ids.append(category_id)
            else:
                resolution.unknown.append(value)
        return resolution

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def replace_article_categories(self, article_id: str, category_ids: Iterable[str]) -> None:
        """Delete every join row for the article, then insert the new set.

        Runs inside the caller's transaction and only flushes; the caller
        commits or rolls back. Duplicate ids are collapsed, first
        occurrence wins the position.
        """
        self.db.query(ArticleCategory).filter(
            ArticleCategory.article_id == article_id
        ).delete(synchronize_session="fetch")

        unique_ids = list(dict.fromkeys(category_ids))
        if unique_ids:
            self.db.add_all([
                ArticleCategory(article_id=article_id, category_id=category_id, position=position)
                for position, category_id in enumerate(unique_ids)
            ])
        self.db.flush()
        self.db.expire_all()

    def get_for_article(self, article_id: str) -> List[Category]:
        """Categories of one article in join order."""
        return (
            self.db.query(Category)
            .join(ArticleCategory, ArticleCategory.category_id == Category.id)
            .filter(ArticleCategory.article_id == article_id)
            .order_by(ArticleCategory.position, ArticleCategory.created_at)
            .all()
        )

    def get_for_articles(self, article_ids: Iterable[str]) -> Dict[str, List[Category]]:
        """Categories for many articles with one joined query.

        Articles without categories are absent from the result; callers
        default to an empty list.
        """
        ids = list(dict.fromkeys(article_ids))
        if not ids:
            return {}

        rows = (
            self.db.query(ArticleCategory.article_id, Category)
            .join(Category, ArticleCategory.category_id == Category.id)
            .filter(ArticleCategory.article_id.in_(ids))
            .order_by(ArticleCategory.article_id, ArticleCategory.position, ArticleCategory.created_at)
            .all()
        )

        grouped: Dict[str, List[Category]] = defaultdict(list)
        for article_id, category in rows:
            grouped[article_id].append(category)
        return dict(grouped)
