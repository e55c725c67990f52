"""Tests for newsletter preferences."""

import pytest

from portal.core.config import settings
from portal.core.token_factory import UNSUBSCRIBE_PURPOSE, decode_token
from portal.exceptions import UnknownCategoriesError, UserNotFoundError
from portal.models import EmailFrequency, UserPreferenceCategory
from portal.schemas.preferences import PreferencesUpdate
from portal.services import PreferencesService
from portal.services.preferences_service import create_unsubscribe_token, unsubscribe_url

from conftest import token_headers


class TestPreferencesService:

    def test_defaults_without_stored_row(self, db, make_user):
        user = make_user("ida@example.dk")
        prefs = PreferencesService(db).get_preferences(user.user_id)
        assert prefs.all_categories is True
        assert prefs.categories == []
        assert prefs.email_frequency == EmailFrequency.WEEKLY

    def test_save_by_names(self, db, make_user, make_category):
        user = make_user("ida@example.dk")
        kontor, lager = make_category("Kontor"), make_category("Lager")

        prefs = PreferencesService(db).save_preferences(user.user_id, PreferencesUpdate(
            all_categories=False,
            categories=["Kontor", "lager", kontor.id],
            email_frequency=EmailFrequency.IMMEDIATE,
        ))

        assert prefs.all_categories is False
        assert set(prefs.categories) == {kontor.id, lager.id}
        assert len(prefs.categories) == 2
        assert prefs.email_frequency == EmailFrequency.IMMEDIATE

    def test_all_categories_clears_explicit_set(self, db, make_user, make_category):
        kontor = make_category("Kontor")
        user = make_user("ida@example.dk", frequency=EmailFrequency.WEEKLY, all_categories=False, categories=[kontor])

        prefs = PreferencesService(db).save_preferences(user.user_id, PreferencesUpdate(
            all_categories=True,
            categories=["Kontor"],
            email_frequency=EmailFrequency.WEEKLY,
        ))

        assert prefs.all_categories is True
        assert prefs.categories == []
        assert db.query(UserPreferenceCategory).count() == 0

    def test_unknown_category_changes_nothing(self, db, make_user, make_category):
        kontor = make_category("Kontor")
        user = make_user("ida@example.dk", frequency=EmailFrequency.WEEKLY, all_categories=False, categories=[kontor])
        service = PreferencesService(db)

        with pytest.raises(UnknownCategoriesError) as exc:
            service.save_preferences(user.user_id, PreferencesUpdate(
                all_categories=False,
                categories=["Lager"],
                email_frequency=EmailFrequency.IMMEDIATE,
            ))

        assert exc.value.details["unknown"] == ["Lager"]
        prefs = service.get_preferences(user.user_id)
        assert prefs.categories == [kontor.id]
        assert prefs.email_frequency == EmailFrequency.WEEKLY

    def test_resave_same_categories(self, db, make_user, make_category):
        kontor = make_category("Kontor")
        user = make_user("ida@example.dk")
        service = PreferencesService(db)
        update = PreferencesUpdate(all_categories=False, categories=["Kontor"], email_frequency=EmailFrequency.WEEKLY)

        service.save_preferences(user.user_id, update)
        prefs = service.save_preferences(user.user_id, update)

        assert prefs.categories == [kontor.id]

    def test_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            PreferencesService(db).save_preferences(
                "missing", PreferencesUpdate(email_frequency=EmailFrequency.WEEKLY)
            )

    def test_unsubscribe_keeps_categories(self, db, make_user, make_category):
        kontor = make_category("Kontor")
        user = make_user("ida@example.dk", frequency=EmailFrequency.IMMEDIATE, all_categories=False, categories=[kontor])

        prefs = PreferencesService(db).unsubscribe(user.user_id)

        assert prefs.email_frequency == EmailFrequency.NEVER
        assert prefs.categories == [kontor.id]

    def test_unsubscribe_without_stored_row(self, db, make_user):
        user = make_user("ida@example.dk")
        prefs = PreferencesService(db).unsubscribe(user.user_id)
        assert prefs.email_frequency == EmailFrequency.NEVER
        assert prefs.all_categories is True


class TestPreferencesApi:

    def test_requires_token(self, client, auth_on):
        assert client.get("/api/user/preferences").status_code == 401

    def test_round_trip(self, client, auth_on, make_user, make_category):
        kontor = make_category("Kontor")
        user = make_user("ida@example.dk")
        headers = token_headers(user.user_id)

        assert client.get("/api/user/preferences", headers=headers).json()["email_frequency"] == "weekly"

        resp = client.put("/api/user/preferences", headers=headers, json={"email_frequency": "daily"})
        assert resp.json()["email_frequency"] == "daily"

        resp = client.put("/api/user/preferences", headers=headers, json={
            "all_categories": False,
            "categories": ["Kontor"],
            "email_frequency": "immediate",
        })
        assert resp.status_code == 200
        assert resp.json()["categories"] == [kontor.id]

        resp = client.post("/api/user/preferences/unsubscribe", headers=headers)
        assert resp.json()["email_frequency"] == "never"

    def test_unknown_category_rejected(self, client, auth_on, make_user):
        user = make_user("ida@example.dk")
        resp = client.put("/api/user/preferences", headers=token_headers(user.user_id), json={
            "all_categories": False,
            "categories": ["Findes ikke"],
            "email_frequency": "weekly",
        })
        assert resp.status_code == 400
        assert resp.json()["details"]["unknown"] == ["Findes ikke"]

    def test_invalid_frequency(self, client, auth_on, make_user):
        user = make_user("ida@example.dk")
        resp = client.put("/api/user/preferences", headers=token_headers(user.user_id), json={
            "email_frequency": "hourly",
        })
        assert resp.status_code == 422

    def test_deactivated_user_rejected(self, client, auth_on, make_user):
        user = make_user("ida@example.dk", is_active=False)
        assert client.get("/api/user/preferences", headers=token_headers(user.user_id)).status_code == 401


class TestUnsubscribeLink:

    def test_url_carries_unsubscribe_token(self, make_user):
        user = make_user("ida@example.dk")
        url = unsubscribe_url(user.user_id)
        assert url.startswith(f"{settings.public_app_url.rstrip('/')}/api/email/unsubscribe?token=")
        token = url.split("token=", 1)[1]
        payload = decode_token(token, settings.jwt_secret_key, purpose=UNSUBSCRIBE_PURPOSE)
        assert payload.sub == user.user_id

    def test_one_click_unsubscribe(self, client, db, auth_on, make_user):
        user = make_user("ida@example.dk", frequency=EmailFrequency.DAILY)

        resp = client.get("/api/email/unsubscribe", params={"token": create_unsubscribe_token(user.user_id)})

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "afmeldt" in resp.text
        assert PreferencesService(db).get_preferences(user.user_id).email_frequency == EmailFrequency.NEVER

    def test_missing_token(self, client):
        resp = client.get("/api/email/unsubscribe")
        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "token"}

    def test_garbage_token(self, client):
        assert client.get("/api/email/unsubscribe", params={"token": "abc.def.ghi"}).status_code == 400

    def test_access_token_cannot_unsubscribe(self, client, db, make_user):
        user = make_user("ida@example.dk", frequency=EmailFrequency.WEEKLY)
        access = token_headers(user.user_id)["Authorization"].split(" ", 1)[1]

        resp = client.get("/api/email/unsubscribe", params={"token": access})

        assert resp.status_code == 400
        assert PreferencesService(db).get_preferences(user.user_id).email_frequency == EmailFrequency.WEEKLY

    def test_deleted_user(self, client):
        resp = client.get("/api/email/unsubscribe", params={"token": create_unsubscribe_token("ghost")})
        assert resp.status_code == 404
