"""AI prompt administration, including version history."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin
from ..core.cache import TTLCache
from ..core.config import settings
from ..database import get_db
from ..exceptions import PromptNotFoundError
from ..schemas.prompt import (
    PromptCreate,
    PromptRenderRequest,
    PromptResponse,
    PromptRestoreRequest,
    PromptUpdate,
    PromptUpdateResponse,
    PromptVersionResponse,
)
from ..services import PromptService

router = APIRouter(prefix="/api/admin/ai-prompts", tags=["admin"])

# Process-wide prompt cache shared by every request in this worker.
prompt_cache: TTLCache[str] = TTLCache(settings.prompt_cache_ttl_seconds)


def get_prompt_service(db: Session = Depends(get_db)) -> PromptService:
    return PromptService(db, cache=prompt_cache)


@router.get("", response_model=List[PromptResponse])
def list_prompts(
    section: Optional[str] = None,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.list_prompts(section)


@router.post("", response_model=PromptResponse, status_code=201)
def create_prompt(
    data: PromptCreate,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.create_prompt(data)


@router.get("/{prompt_id}", response_model=PromptResponse)
def get_prompt(
    prompt_id: str,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.get_prompt_by_id(prompt_id)


@router.put("/{prompt_id}", response_model=PromptUpdateResponse)
def update_prompt(
    prompt_id: str,
    data: PromptUpdate,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    """Update a prompt; the previous state is archived when anything changed."""
    return service.update_prompt(prompt_id, data, created_by=auth.user_id)


@router.delete("/{prompt_id}", status_code=204)
def delete_prompt(
    prompt_id: str,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    service.delete_prompt(prompt_id)


@router.get("/{prompt_id}/versions", response_model=List[PromptVersionResponse])
def list_versions(
    prompt_id: str,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    """Archived versions, newest first."""
    return service.list_versions(prompt_id)


@router.post("/{prompt_id}/restore", response_model=PromptUpdateResponse)
def restore_version(
    prompt_id: str,
    data: PromptRestoreRequest,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.restore_version(prompt_id, data.version_id, created_by=auth.user_id)


@router.post("/{prompt_id}/render")
def render_prompt(
    prompt_id: str,
    data: PromptRenderRequest,
    service: PromptService = Depends(get_prompt_service),
    auth: AuthContext = Depends(require_admin),
):
    """Fill a prompt's variables without calling any model."""
    prompt = service.get_prompt_by_id(prompt_id)
    rendered = service.get_prompt_with_vars(prompt.key, data.variables)
    if rendered is None:
        raise PromptNotFoundError(prompt.key)
    return {"key": prompt.key, "prompt": rendered}
