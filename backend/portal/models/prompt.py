"""AI prompt and prompt version models."""

import uuid

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class AiPrompt(Base):
    """Live, editable prompt. Always holds the latest state."""

    __tablename__ = "ai_prompts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(100), nullable=False, unique=True)  # e.g. "article_generation"
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    model = Column(String(100), nullable=False)
    section = Column(String(100), nullable=False)
    prompt = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    versions = relationship(
        "AiPromptVersion",
        back_populates="ai_prompt",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AiPromptVersion(Base):
    """Immutable snapshot of a prompt's state before a change."""

    __tablename__ = "ai_prompt_versions"
    __table_args__ = (
        Index("ix_ai_prompt_versions_prompt_id", "prompt_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    prompt_id = Column(String(36), ForeignKey("ai_prompts.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    model = Column(String(100), nullable=False)
    section = Column(String(100), nullable=False)
    prompt = Column(Text, nullable=False)

    version_number = Column(String(20), nullable=False)  # "major.minor"
    change_description = Column(Text, nullable=True)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ai_prompt = relationship("AiPrompt", back_populates="versions")
