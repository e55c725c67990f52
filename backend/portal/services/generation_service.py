"""AI article generation through LiteLLM.

The ``article_generation`` prompt is loaded from the prompt store, filled
with the topic and the category list, and sent to the configured model.
The model must answer with a JSON object; the result is stored as a draft
for an editor to review.
"""

import json
import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from ..core.cache import TTLCache
from ..core.config import settings
from ..exceptions import ServiceUnavailableError, ValidationError
from ..models import ArticleStatus
from ..schemas.article import ArticleCreate, ArticleResponse
from .article_service import ArticleService
from .category_service import CategoryService
from .prompt_service import PromptService
from .settings_service import PROVIDER_MODELS, SettingsService

logger = logging.getLogger(__name__)

ARTICLE_PROMPT_KEY = "article_generation"

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> dict:
    """Parse the JSON object in an LLM answer, tolerating code fences and chatter.

    Raises:
        ValueError: If no JSON object can be parsed.
    """
    candidate = text.strip()
    fenced = _CODE_FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1)
    match = _JSON_OBJECT.search(candidate)
    if match:
        candidate = match.group(0)
    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


class GenerationService:
    """Generates draft articles with an LLM."""

    def __init__(self, db: Session, prompt_cache: Optional[TTLCache[str]] = None):
        self.db = db
        self.prompts = PromptService(db, cache=prompt_cache)
        self.articles = ArticleService(db)
        self.categories = CategoryService(db)
        self.settings = SettingsService(db)

    def model_name(self) -> str:
        return settings.llm_model or PROVIDER_MODELS[self.settings.get_ai_provider()]

    def _complete(self, prompt: str) -> str:
        import litellm

        kwargs: dict = {
            "model": self.model_name(),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.7,
            "timeout": 120,
        }
        if settings.llm_api_key:
            kwargs["api_key"] = settings.llm_api_key
        if settings.llm_api_base:
            kwargs["api_base"] = settings.llm_api_base

        try:
            response = litellm.completion(**kwargs)
        except Exception as e:
            logger.exception("LLM completion failed")
            raise ServiceUnavailableError("llm", f"Article generation failed: {e}") from e
        return response.choices[0].message.content or ""

    def generate_article(self, topic: str) -> ArticleResponse:
        """Generate and store a draft article about ``topic``.

        Category names suggested by the model that do not exist are dropped.

        Raises:
            ValidationError: If the topic is blank or the model answer is unusable.
            ServiceUnavailableError: If the prompt is missing or the LLM call fails.
        """
        topic = topic.strip()
        if not topic:
            raise ValidationError("Topic cannot be empty", field="topic")

        category_names = [c.name for c in self.categories.list_categories()]
        prompt = self.prompts.get_prompt_with_vars(
            ARTICLE_PROMPT_KEY,
            {"topic": topic, "categories": ", ".join(category_names)},
        )
        if prompt is None:
            raise ServiceUnavailableError("llm", f"AI prompt '{ARTICLE_PROMPT_KEY}' is not configured")

        answer = self._complete(prompt)
        try:
            data = extract_json_object(answer)
        except ValueError as e:
            logger.error("Unparseable LLM answer: %s", answer[:200])
            raise ValidationError(f"Model answer was not valid JSON: {e}") from e

        title = str(data.get("title") or "").strip()
        content = str(data.get("content") or "").strip()
        if not title or not content:
            raise ValidationError("Model answer is missing a title or content")

        suggested = [str(name) for name in data.get("categories") or []]
        resolution = self.categories.resolve_category_ids(suggested)
        categories = [name for name in suggested if name not in resolution.unknown]
        if resolution.unknown:
            logger.warning("Dropping unknown categories from generated article: %s", resolution.unknown)

        prompt_row = self.prompts.repo.get_by_key(ARTICLE_PROMPT_KEY)
        article = self.articles.create_article(ArticleCreate(
            title=title,
            slug=self.articles.unique_slug(title),
            content=content,
            summary=data.get("summary"),
            meta_description=data.get("meta_description"),
            source_url=data.get("source_url"),
            status=ArticleStatus.DRAFT,
            categories=categories,
            prompt_id=prompt_row.id if prompt_row else None,
        ))
        logger.info("Generated draft article %s", article.slug, extra={"article_id": article.id, "topic": topic})
        return article
