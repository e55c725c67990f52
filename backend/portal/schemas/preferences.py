"""User preference schemas."""

from pydantic import BaseModel
from typing import List

from ..models.enums import EmailFrequency


class PreferencesUpdate(BaseModel):
    """Replace the caller's preferences.

    ``categories`` accepts ids or names and is ignored when
    ``all_categories`` is true.
    """
    all_categories: bool = True
    categories: List[str] = []
    email_frequency: EmailFrequency


class PreferencesResponse(BaseModel):
    all_categories: bool
    categories: List[str]  # category ids
    email_frequency: EmailFrequency
