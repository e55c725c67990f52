"""Tests for LLM article generation and the AI provider setting.

The LLM is never called: ``litellm.completion`` is patched per test.
"""

import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from portal.api.prompts import prompt_cache
from portal.core.seeder import seed_reference_data
from portal.exceptions import ServiceUnavailableError, ValidationError
from portal.models import AIProvider, AiPrompt, Article, ArticleStatus
from portal.services import GenerationService, SettingsService
from portal.services.generation_service import extract_json_object


def _completion(content: str):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


ANSWER = {
    "title": "Rekordhandel med lagerejendomme",
    "summary": "Investorer køber op.",
    "meta_description": "Lagerejendomme handles som aldrig før.",
    "content": "# Rekordhandel\n\nMarkedet for lagerejendomme boomer.",
    "categories": ["Lager", "Investering", "Rumfart"],
}


@pytest.fixture()
def seeded(db):
    seed_reference_data(db)


class TestExtractJsonObject:

    def test_plain(self):
        assert extract_json_object('{"title": "x"}') == {"title": "x"}

    def test_code_fence(self):
        assert extract_json_object('Her er den:\n```json\n{"title": "x"}\n```') == {"title": "x"}

    def test_surrounding_chatter(self):
        assert extract_json_object('Selvfølgelig! {"a": 1} Håber det hjælper.') == {"a": 1}

    def test_no_object(self):
        with pytest.raises(ValueError):
            extract_json_object("ingen json her")

    def test_array_rejected(self):
        with pytest.raises(ValueError):
            extract_json_object("[1, 2]")


class TestGenerateArticle:

    def test_creates_draft(self, db, seeded):
        with patch("litellm.completion", return_value=_completion(json.dumps(ANSWER))) as completion:
            article = GenerationService(db).generate_article("lagerhaller i Jylland")

        assert article.status == ArticleStatus.DRAFT
        assert article.slug == "rekordhandel-med-lagerejendomme"
        assert [c.name for c in article.categories] == ["Lager", "Investering"]
        prompt_id = db.query(AiPrompt.id).filter(AiPrompt.key == "article_generation").scalar()
        assert article.prompt_id == prompt_id

        sent = completion.call_args.kwargs
        assert sent["model"] == "gpt-4o-mini"
        assert "lagerhaller i Jylland" in sent["messages"][0]["content"]
        assert "Investering" in sent["messages"][0]["content"]

    def test_repeated_title_gets_suffix(self, db, seeded):
        with patch("litellm.completion", return_value=_completion(json.dumps(ANSWER))):
            GenerationService(db).generate_article("a")
            second = GenerationService(db).generate_article("b")
        assert second.slug == "rekordhandel-med-lagerejendomme-2"

    def test_provider_setting_selects_model(self, db, seeded):
        SettingsService(db).set_ai_provider(AIProvider.CLAUDE)
        with patch("litellm.completion", return_value=_completion(json.dumps(ANSWER))) as completion:
            GenerationService(db).generate_article("kontorer")
        assert completion.call_args.kwargs["model"] == "anthropic/claude-3-5-sonnet-latest"

    def test_blank_topic(self, db, seeded):
        with pytest.raises(ValidationError):
            GenerationService(db).generate_article("   ")

    def test_missing_prompt(self, db):
        with pytest.raises(ServiceUnavailableError):
            GenerationService(db).generate_article("kontorer")

    def test_llm_failure(self, db, seeded):
        with patch("litellm.completion", side_effect=RuntimeError("rate limited")):
            with pytest.raises(ServiceUnavailableError):
                GenerationService(db).generate_article("kontorer")
        assert db.query(Article).count() == 0

    def test_unusable_answer(self, db, seeded):
        with patch("litellm.completion", return_value=_completion("Beklager, det kan jeg ikke.")):
            with pytest.raises(ValidationError):
                GenerationService(db).generate_article("kontorer")

    def test_answer_without_content(self, db, seeded):
        with patch("litellm.completion", return_value=_completion('{"title": "Kun titel"}')):
            with pytest.raises(ValidationError):
                GenerationService(db).generate_article("kontorer")

    def test_uses_cached_prompt(self, db, seeded):
        prompt_cache.set("article_generation", "Fra cache: {{topic}}")
        with patch("litellm.completion", return_value=_completion(json.dumps(ANSWER))) as completion:
            GenerationService(db, prompt_cache=prompt_cache).generate_article("havne")
        assert completion.call_args.kwargs["messages"][0]["content"] == "Fra cache: havne"


class TestAdminSettingsApi:

    def test_provider_round_trip(self, client):
        assert client.get("/api/admin/settings/ai-provider").json() == {"provider": "openai"}
        assert client.put("/api/admin/settings/ai-provider", json={"provider": "gemini"}).status_code == 200
        assert client.get("/api/admin/settings/ai-provider").json() == {"provider": "gemini"}

    def test_unknown_provider(self, client):
        assert client.put("/api/admin/settings/ai-provider", json={"provider": "skynet"}).status_code == 422

    def test_trigger_generate_article(self, client, seeded):
        with patch("litellm.completion", return_value=_completion(json.dumps(ANSWER))):
            resp = client.post("/api/admin/trigger-cron", json={"job": "generate_article", "topic": "lager"})
        assert resp.status_code == 200
        assert resp.json()["result"]["slug"] == "rekordhandel-med-lagerejendomme"

    def test_trigger_weekly_digest(self, client):
        resp = client.post("/api/admin/trigger-cron", json={"job": "weekly_digest"})
        assert resp.json() == {"job": "weekly_digest", "result": {"sent": 0, "failed": 0, "skipped": 0, "failures": []}}

    def test_trigger_daily_digest(self, client):
        resp = client.post("/api/admin/trigger-cron", json={"job": "daily_digest"})
        assert resp.status_code == 200
        assert resp.json()["result"]["sent"] == 0

    def test_trigger_unknown_job(self, client):
        resp = client.post("/api/admin/trigger-cron", json={"job": "reindex"})
        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "job"}
