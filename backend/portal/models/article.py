"""Article model."""

import uuid

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import ArticleStatus


class Article(Base):
    """Long-form news article. Public routes only ever read published rows."""

    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_status_published_date", "status", "published_date"),
        Index("ix_articles_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=False, unique=True)
    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    meta_description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    source_url = Column(Text, nullable=True)

    # Allowed values: ArticleStatus
    status = Column(String(20), nullable=False, default=ArticleStatus.DRAFT.value)
    published_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Prompt that generated the article, if any
    prompt_id = Column(String(36), ForeignKey("ai_prompts.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category_links = relationship(
        "ArticleCategory",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleCategory.position",
    )
    prompt = relationship("AiPrompt")

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED.value
