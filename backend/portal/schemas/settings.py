"""Runtime setting schemas."""

from pydantic import BaseModel

from ..models.enums import AIProvider


class AIProviderSetting(BaseModel):
    provider: AIProvider


class CronTriggerRequest(BaseModel):
    job: str  # "daily_digest" | "weekly_digest" | "generate_article"
    topic: str = ""


class CronTriggerResponse(BaseModel):
    job: str
    result: dict
