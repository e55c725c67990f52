"""Category service: CRUD, name/id resolution and article membership."""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import SlugConflictError, UnknownCategoriesError, ValidationError
from ..models import Category
from ..repositories import CategoryRepository, CategoryResolution
from ..schemas.category import CategoryCreate, CategoryUpdate, CategoryWithCountResponse
from .content_utils import slugify

logger = logging.getLogger(__name__)


class CategoryService:
    """Categories and the article/category join.

    Read helpers never commit. ``replace_article_categories`` commits only
    when asked to, so article writes can bundle it into their own
    transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CategoryRepository(db)

    # -- resolution -------------------------------------------------------

    def resolve_category_ids(self, inputs: List[str]) -> CategoryResolution:
        """Map names or ids to ids. Unresolved inputs come back in ``unknown``."""
        resolution = self.repo.resolve_ids(inputs)
        if resolution.unknown:
            logger.info("Unresolved categories: %s", resolution.unknown)
        return resolution

    def require_category_ids(self, inputs: List[str]) -> List[str]:
        """Like resolve_category_ids but all-or-nothing.

        Raises:
            UnknownCategoriesError: If any input did not resolve.
        """
        resolution = self.resolve_category_ids(inputs)
        if not resolution.ok:
            raise UnknownCategoriesError(resolution.unknown)
        return resolution.ids

    # -- membership -------------------------------------------------------

    def replace_article_categories(self, article_id: str, category_ids: List[str], commit: bool = True) -> None:
        """Replace the article's whole category set.

        On a store error the session is rolled back and the error re-raised,
        so the previous set stays intact.
        """
        try:
            self.repo.replace_article_categories(article_id, category_ids)
            if commit:
                self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to replace categories for article %s", article_id)
            raise

    def get_article_categories(self, article_id: str) -> List[Category]:
        return self.repo.get_for_article(article_id)

    def get_article_categories_bulk(self, article_ids: List[str]) -> Dict[str, List[Category]]:
        """Categories for many articles at once; articles without any are absent."""
        return self.repo.get_for_articles(article_ids)

    # -- CRUD -------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return self.repo.get_all()

    def list_with_counts(self) -> List[CategoryWithCountResponse]:
        """Every category with its number of published articles."""
        counts = self.repo.published_counts()
        return [
            CategoryWithCountResponse(
                id=category.id,
                name=category.name,
                slug=category.slug,
                description=category.description,
                hero_image=category.hero_image,
                article_count=counts.get(category.id, 0),
            )
            for category in self.repo.get_all()
        ]

    def get_category(self, category_id: str) -> Category:
        return self.repo.get_by_id(category_id)

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return self.repo.get_by_slug(slug)

    def create_category(self, data: CategoryCreate) -> Category:
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationError("Category slug cannot be empty", field="slug")
        if self.repo.name_exists(data.name):
            raise ValidationError(f"Category '{data.name}' already exists", field="name")
        if self.repo.slug_exists(slug):
            raise SlugConflictError(slug, entity="category")

        category = self.repo.create(
            name=data.name,
            slug=slug,
            description=data.description,
            hero_image=data.hero_image,
        )
        self.db.commit()
        logger.info("Created category %s", category.slug, extra={"category_id": category.id})
        return category

    def update_category(self, category_id: str, data: CategoryUpdate) -> Category:
        category = self.repo.get_by_id(category_id)
        fields = data.model_dump(exclude_unset=True)

        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise ValidationError("Category name cannot be blank", field="name")
            if self.repo.name_exists(name, exclude_id=category_id):
                raise ValidationError(f"Category '{name}' already exists", field="name")
            category.name = name

        if fields.get("slug"):
            slug = slugify(fields["slug"])
            if not slug:
                raise ValidationError("Category slug cannot be empty", field="slug")
            if self.repo.slug_exists(slug, exclude_id=category_id):
                raise SlugConflictError(slug, entity="category")
            category.slug = slug

        for name in ("description", "hero_image"):
            if name in fields:
                setattr(category, name, fields[name])

        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: str) -> None:
        """Delete a category. Join rows go with it; articles stay."""
        self.repo.delete(category_id)
        self.db.commit()
        logger.info("Deleted category", extra={"category_id": category_id})
