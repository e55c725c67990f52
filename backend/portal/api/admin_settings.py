"""Runtime settings and on-demand background jobs."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..exceptions import ValidationError
from ..schemas.settings import AIProviderSetting, CronTriggerRequest, CronTriggerResponse
from ..services import GenerationService, NotificationService, SettingsService
from .prompts import prompt_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

JOBS = ("daily_digest", "weekly_digest", "generate_article")


@router.get("/settings/ai-provider", response_model=AIProviderSetting)
def get_ai_provider(db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    return AIProviderSetting(provider=SettingsService(db).get_ai_provider())


@router.put("/settings/ai-provider", response_model=AIProviderSetting)
def set_ai_provider(
    data: AIProviderSetting,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return AIProviderSetting(provider=SettingsService(db).set_ai_provider(data.provider))


@router.post("/trigger-cron", response_model=CronTriggerResponse)
def trigger_cron(
    data: CronTriggerRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Run a scheduled job now."""
    logger.info("Manual job trigger", extra={"job": data.job, "user_id": auth.user_id})

    if data.job == "daily_digest":
        report = NotificationService(db).send_daily_digest()
        return CronTriggerResponse(job=data.job, result=report.to_dict())

    if data.job == "weekly_digest":
        report = NotificationService(db).send_weekly_digest()
        return CronTriggerResponse(job=data.job, result=report.to_dict())

    if data.job == "generate_article":
        article = GenerationService(db, prompt_cache=prompt_cache).generate_article(data.topic)
        return CronTriggerResponse(job=data.job, result={"article_id": article.id, "slug": article.slug})

    raise ValidationError(f"Unknown job '{data.job}'. Expected one of: {', '.join(JOBS)}", field="job")
