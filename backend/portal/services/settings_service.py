"""Runtime settings stored in the database."""

import logging

from sqlalchemy.orm import Session

from ..models import AIProvider
from ..repositories import SystemSettingRepository

logger = logging.getLogger(__name__)

AI_PROVIDER_KEY = "ai_provider"
DEFAULT_AI_PROVIDER = AIProvider.OPENAI

# LiteLLM model used for each provider unless LLM_MODEL overrides it.
PROVIDER_MODELS = {
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.GEMINI: "gemini/gemini-1.5-flash",
    AIProvider.CLAUDE: "anthropic/claude-3-5-sonnet-latest",
}


class SettingsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SystemSettingRepository(db)

    def get_ai_provider(self) -> AIProvider:
        """Stored provider, falling back to the default for missing or unknown values."""
        value = self.repo.get_value(AI_PROVIDER_KEY)
        try:
            return AIProvider(value) if value else DEFAULT_AI_PROVIDER
        except ValueError:
            logger.warning("Ignoring unknown ai_provider setting %r", value)
            return DEFAULT_AI_PROVIDER

    def set_ai_provider(self, provider: AIProvider) -> AIProvider:
        self.repo.set_value(AI_PROVIDER_KEY, provider.value, description="AI provider for article generation")
        self.db.commit()
        logger.info("AI provider set to %s", provider.value)
        return provider
