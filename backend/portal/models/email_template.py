"""Email template model."""

import uuid

from sqlalchemy import Column, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from ..database import Base


class EmailTemplate(Base):
    """Editable copy for one transactional email.

    ``content`` is a JSON document whose shape depends on ``key``
    (see ``schemas.email_template``).
    """

    __tablename__ = "email_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(500), nullable=False)
    preview_text = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
