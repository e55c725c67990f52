"""AI prompt schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict


class PromptBase(BaseModel):
    """Editable prompt fields."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    model: str = Field(..., min_length=1)
    section: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)


class PromptCreate(PromptBase):
    """Schema for creating a prompt."""
    key: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")


class PromptUpdate(PromptBase):
    """Full replacement of the tracked fields, with an optional change note."""
    key: Optional[str] = Field(None, min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")
    change_description: Optional[str] = None


class PromptResponse(PromptBase):
    """Live prompt."""
    id: str
    key: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PromptUpdateResponse(BaseModel):
    prompt: PromptResponse
    archived_version: Optional[str] = None
    message: str


class PromptVersionResponse(BaseModel):
    """Archived prompt snapshot."""
    id: str
    prompt_id: str
    name: str
    description: Optional[str] = None
    model: str
    section: str
    prompt: str
    version_number: str
    change_description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PromptRestoreRequest(BaseModel):
    version_id: str


class PromptRenderRequest(BaseModel):
    variables: Dict[str, str] = {}
