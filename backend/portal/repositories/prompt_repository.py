"""AI prompt and prompt version repositories."""

from typing import List, Optional

from ..models import AiPrompt, AiPromptVersion
from ..exceptions import PromptNotFoundError, PromptVersionNotFoundError
from .base import BaseRepository

INITIAL_VERSION = "1.0"


def parse_version(version_number: str) -> tuple[int, int]:
    """Parse "major.minor"; missing or malformed parts default to 1.0."""
    parts = (version_number or "").split(".")
    try:
        major = int(parts[0])
    except (ValueError, IndexError):
        major = 1
    try:
        minor = int(parts[1])
    except (ValueError, IndexError):
        minor = 0
    return major, minor


def next_version(latest: Optional[str]) -> str:
    """Version number that follows ``latest`` (minor + 1), or 1.0 for the first snapshot."""
    if latest is None:
        return INITIAL_VERSION
    major, minor = parse_version(latest)
    return f"{major}.{minor + 1}"


class PromptRepository(BaseRepository[AiPrompt]):
    """Repository for live prompts."""

    model_class = AiPrompt
    not_found_error = PromptNotFoundError

    def get_by_key(self, key: str) -> Optional[AiPrompt]:
        return self.db.query(AiPrompt).filter(AiPrompt.key == key).first()

    def get_all(self, section: Optional[str] = None) -> List[AiPrompt]:
        query = self.db.query(AiPrompt)
        if section:
            query = query.filter(AiPrompt.section == section)
        return query.order_by(AiPrompt.section, AiPrompt.name).all()

    def key_exists(self, key: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(AiPrompt.id).filter(AiPrompt.key == key)
        if exclude_id:
            query = query.filter(AiPrompt.id != exclude_id)
        return query.first() is not None


class PromptVersionRepository(BaseRepository[AiPromptVersion]):
    """Append-only store of prompt snapshots. Rows are never updated."""

    model_class = AiPromptVersion
    not_found_error = PromptVersionNotFoundError

    def get_by_prompt(self, prompt_id: str) -> List[AiPromptVersion]:
        """Versions of a prompt, highest version number first."""
        versions = self.db.query(AiPromptVersion).filter(
            AiPromptVersion.prompt_id == prompt_id
        ).all()
        return sorted(versions, key=lambda v: parse_version(v.version_number), reverse=True)

    def latest_version_number(self, prompt_id: str) -> Optional[str]:
        numbers = [
            row.version_number
            for row in self.db.query(AiPromptVersion.version_number).filter(
                AiPromptVersion.prompt_id == prompt_id
            )
        ]
        if not numbers:
            return None
        return max(numbers, key=parse_version)

    def snapshot(self, prompt: AiPrompt, change_description: Optional[str] = None,
                 created_by: Optional[str] = None) -> AiPromptVersion:
        """Archive the prompt's current state under the next version number."""
        version = AiPromptVersion(
            prompt_id=prompt.id,
            name=prompt.name,
            description=prompt.description,
            model=prompt.model,
            section=prompt.section,
            prompt=prompt.prompt,
            version_number=next_version(self.latest_version_number(prompt.id)),
            change_description=change_description,
            created_by=created_by,
        )
        self.db.add(version)
        self.db.flush()
        self.db.refresh(version)
        return version
