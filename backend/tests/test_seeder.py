"""Tests for reference data seeding."""

import json

import pytest

from portal.core.seeder import load_fixture, seed_reference_data
from portal.models import Category, EmailTemplate, EmailTemplateKey
from portal.services import EmailTemplateService


def test_seeds_empty_tables(db):
    counts = seed_reference_data(db)

    assert counts["categories"] == db.query(Category).count() > 0
    assert counts["prompts"] == 2
    assert counts["email_templates"] == 5
    assert counts["settings"] == 1


def test_second_run_is_a_no_op(db):
    seed_reference_data(db)
    assert seed_reference_data(db) == {"categories": 0, "prompts": 0, "email_templates": 0, "settings": 0}


def test_existing_categories_are_kept(db, make_category):
    make_category("Egen kategori")
    counts = seed_reference_data(db)
    assert counts["categories"] == 0
    assert [c.name for c in db.query(Category).all()] == ["Egen kategori"]


def test_seeded_templates_pass_validation(db):
    seed_reference_data(db)
    for template in db.query(EmailTemplate).all():
        EmailTemplateService.validate_content(EmailTemplateKey(template.key), template.content)


def test_missing_fixture(db, tmp_path):
    assert load_fixture(tmp_path / "missing.json") is None
    assert sum(seed_reference_data(db, tmp_path / "missing.json").values()) == 0


def test_custom_fixture(db, tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"categories": [{"name": "Havn", "slug": "havn"}]}), encoding="utf-8")
    assert seed_reference_data(db, path)["categories"] == 1


def test_session_scope_rolls_back_on_error(db):
    from portal.database import session_scope

    with pytest.raises(RuntimeError):
        with session_scope() as session:
            session.add(Category(name="Halvfærdig", slug="halvfaerdig"))
            session.flush()
            raise RuntimeError("boom")

    assert db.query(Category).count() == 0
