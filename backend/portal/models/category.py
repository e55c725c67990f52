"""Category and article/category join models."""

import uuid

from sqlalchemy import Column, Index, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Category(Base):
    """News category. Lifecycle is independent of the articles it tags."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    hero_image = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    article_links = relationship(
        "ArticleCategory",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ArticleCategory(Base):
    """Membership of an article in a category.

    The (article_id, category_id) pair is the primary key, so a pair exists
    at most once. ``position`` keeps the order in which categories were
    assigned to the article.
    """

    __tablename__ = "article_categories"
    __table_args__ = (
        Index("ix_article_categories_category_id", "category_id"),
    )

    article_id = Column(String(36), ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    article = relationship("Article", back_populates="category_links")
    category = relationship("Category", back_populates="article_links")
