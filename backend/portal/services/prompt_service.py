"""AI prompt service: CRUD, version history and cached lookups.

Every change to a prompt's tracked fields archives the state it replaces
as an immutable version row first, so the history can always be walked
back. Lookups used by generation go through a TTL cache that the caller
provides; updates through this service invalidate the affected key.
"""

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.cache import TTLCache
from ..exceptions import ValidationError
from ..models import AiPrompt, AiPromptVersion
from ..repositories import PromptRepository, PromptVersionRepository
from ..schemas.prompt import PromptCreate, PromptUpdate, PromptUpdateResponse, PromptResponse

logger = logging.getLogger(__name__)

TRACKED_FIELDS = ("name", "description", "model", "section", "prompt")

_IF_BLOCK = re.compile(r"\{\{#if (\w+)\}\}(.*?)\{\{/if\}\}", re.DOTALL)
_VARIABLE = re.compile(r"\{\{(\w+)\}\}")


def render_prompt(template: str, variables: Dict[str, str]) -> str:
    """Substitute ``{{name}}`` and resolve ``{{#if name}}...{{/if}}`` blocks.

    A conditional block is kept (without its tags) when the variable is
    non-empty and dropped otherwise. Placeholders for variables that were
    not supplied are left as they are.
    """
    def _if(match: re.Match) -> str:
        return match.group(2) if variables.get(match.group(1)) else ""

    def _var(match: re.Match) -> str:
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    return _VARIABLE.sub(_var, _IF_BLOCK.sub(_if, template))


class PromptService:
    """Prompt CRUD with append-only version history."""

    def __init__(self, db: Session, cache: Optional[TTLCache[str]] = None):
        self.db = db
        self.repo = PromptRepository(db)
        self.versions = PromptVersionRepository(db)
        self.cache = cache

    # -- reads ------------------------------------------------------------

    def list_prompts(self, section: Optional[str] = None) -> List[AiPrompt]:
        return self.repo.get_all(section)

    def get_prompt_by_id(self, prompt_id: str) -> AiPrompt:
        return self.repo.get_by_id(prompt_id)

    def get_prompt(self, key: str) -> Optional[str]:
        """Prompt text for ``key``, or None when no such prompt exists."""
        prompt = self.repo.get_by_key(key)
        if prompt is None:
            logger.warning("AI prompt with key %r not found", key)
            return None
        return prompt.prompt

    def get_prompt_with_vars(self, key: str, variables: Dict[str, str]) -> Optional[str]:
        template = self.get_cached_prompt(key)
        if template is None:
            return None
        return render_prompt(template, variables)

    def get_cached_prompt(self, key: str) -> Optional[str]:
        """Like get_prompt, served from the cache when one is attached. Misses are not cached."""
        if self.cache is None:
            return self.get_prompt(key)
        return self.cache.get_or_load(key, lambda: self.get_prompt(key))

    def list_versions(self, prompt_id: str) -> List[AiPromptVersion]:
        """Archived versions of a prompt, newest first."""
        self.repo.get_by_id(prompt_id)
        return self.versions.get_by_prompt(prompt_id)

    # -- writes -----------------------------------------------------------

    def _invalidate(self, *keys: str) -> None:
        if self.cache is None:
            return
        for key in keys:
            self.cache.invalidate(key)

    def create_prompt(self, data: PromptCreate) -> AiPrompt:
        if self.repo.key_exists(data.key):
            raise ValidationError(f"A prompt with key '{data.key}' already exists", field="key")
        prompt = self.repo.create(**data.model_dump())
        self.db.commit()
        self._invalidate(prompt.key)
        logger.info("Created AI prompt %s", prompt.key, extra={"prompt_id": prompt.id})
        return prompt

    def update_prompt(self, prompt_id: str, data: PromptUpdate, created_by: Optional[str] = None) -> PromptUpdateResponse:
        """Replace the tracked fields, archiving the previous state if anything changed.

        A no-op update (identical tracked fields) writes no version.
        """
        prompt = self.repo.get_by_id(prompt_id)
        old_key = prompt.key

        if data.key and data.key != prompt.key and self.repo.key_exists(data.key, exclude_id=prompt_id):
            raise ValidationError(f"A prompt with key '{data.key}' already exists", field="key")

        has_changes = any(getattr(prompt, name) != getattr(data, name) for name in TRACKED_FIELDS)

        archived = None
        try:
            if has_changes:
                archived = self.versions.snapshot(
                    prompt,
                    change_description=data.change_description,
                    created_by=created_by,
                )
            for name in TRACKED_FIELDS:
                setattr(prompt, name, getattr(data, name))
            if data.key:
                prompt.key = data.key
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(prompt)
        self._invalidate(old_key, prompt.key)

        if archived is not None:
            logger.info(
                "Updated AI prompt %s, archived version %s", prompt.key, archived.version_number,
                extra={"prompt_id": prompt.id},
            )
        return PromptUpdateResponse(
            prompt=PromptResponse.model_validate(prompt),
            archived_version=archived.version_number if archived else None,
            message=(
                "AI prompt updated and previous version archived"
                if archived else "AI prompt updated (no changes detected)"
            ),
        )

    def restore_version(self, prompt_id: str, version_id: str, created_by: Optional[str] = None) -> PromptUpdateResponse:
        """Bring back a version's fields, archiving the current state first.

        Raises:
            PromptVersionNotFoundError: If the version does not exist.
            ValidationError: If the version belongs to another prompt.
        """
        version = self.versions.get_by_id(version_id)
        if version.prompt_id != prompt_id:
            raise ValidationError("Version does not belong to this prompt", field="version_id")

        prompt = self.repo.get_by_id(prompt_id)
        try:
            archived = self.versions.snapshot(
                prompt,
                change_description=f"Restored from version {version.version_number}",
                created_by=created_by,
            )
            for name in TRACKED_FIELDS:
                setattr(prompt, name, getattr(version, name))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(prompt)
        self._invalidate(prompt.key)
        logger.info(
            "Restored AI prompt %s from version %s", prompt.key, version.version_number,
            extra={"prompt_id": prompt.id},
        )
        return PromptUpdateResponse(
            prompt=PromptResponse.model_validate(prompt),
            archived_version=archived.version_number,
            message=f"Prompt restored from version {version.version_number}",
        )

    def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt and its version history."""
        prompt = self.repo.get_by_id(prompt_id)
        key = prompt.key
        self.repo.delete(prompt_id)
        self.db.commit()
        self._invalidate(key)
