"""Tests for the article endpoints: admin lifecycle, public listing and preview gating."""

from datetime import datetime, timedelta, timezone

from portal.models import Article, ArticleCategory, ArticleStatus, UserRole

from conftest import token_headers


def _payload(**overrides) -> dict:
    payload = {
        "title": "Ny logistikpark ved Køge",
        "content": "# Ny logistikpark\n\nEn ny park på 40.000 m² opføres syd for København.",
        "summary": "Udvikler opfører logistikpark.",
        "status": "published",
        "categories": [],
    }
    payload.update(overrides)
    return payload


class TestAdminArticleLifecycle:

    def test_create_with_category_names(self, client, make_category):
        make_category("Investering")
        make_category("Logistik")

        resp = client.post("/api/admin/articles", json=_payload(categories=["logistik", "Investering"]))

        assert resp.status_code == 201
        data = resp.json()
        assert data["slug"] == "ny-logistikpark-ved-koege"
        assert [c["name"] for c in data["categories"]] == ["Logistik", "Investering"]

    def test_create_with_unknown_category_writes_nothing(self, client, db, make_category):
        make_category("Investering")

        resp = client.post("/api/admin/articles", json=_payload(categories=["Investering", "Unknown Cat"]))

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "UNKNOWN_CATEGORIES"
        assert body["details"]["unknown"] == ["Unknown Cat"]
        assert db.query(Article).count() == 0

    def test_duplicate_slug_conflicts(self, client):
        assert client.post("/api/admin/articles", json=_payload()).status_code == 201
        resp = client.post("/api/admin/articles", json=_payload())
        assert resp.status_code == 409
        assert resp.json()["error"] == "SLUG_CONFLICT"

    def test_update_replaces_categories(self, client, make_category):
        a, b = make_category("Kontor"), make_category("Lager")
        article_id = client.post("/api/admin/articles", json=_payload(categories=[a.id])).json()["id"]

        resp = client.put(f"/api/admin/articles/{article_id}", json={"categories": [b.id]})

        assert resp.status_code == 200
        assert [c["name"] for c in resp.json()["categories"]] == ["Lager"]

    def test_update_without_categories_keeps_them(self, client, make_category):
        a = make_category("Kontor")
        article_id = client.post("/api/admin/articles", json=_payload(categories=["Kontor"])).json()["id"]

        resp = client.put(f"/api/admin/articles/{article_id}", json={"title": "Ny titel"})

        assert resp.json()["title"] == "Ny titel"
        assert [c["id"] for c in resp.json()["categories"]] == [a.id]

    def test_update_with_unknown_category_keeps_old_state(self, client, db, make_category):
        make_category("Kontor")
        article_id = client.post("/api/admin/articles", json=_payload(categories=["Kontor"])).json()["id"]

        resp = client.put(
            f"/api/admin/articles/{article_id}",
            json={"title": "Skal ikke gemmes", "categories": ["Findes ikke"]},
        )

        assert resp.status_code == 400
        article = client.get(f"/api/admin/articles/{article_id}").json()
        assert article["title"] == "Ny logistikpark ved Køge"
        assert [c["name"] for c in article["categories"]] == ["Kontor"]

    def test_update_with_null_status_rejected(self, client):
        article_id = client.post("/api/admin/articles", json=_payload()).json()["id"]

        resp = client.put(f"/api/admin/articles/{article_id}", json={"status": None})

        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "status"}
        assert client.get(f"/api/admin/articles/{article_id}").json()["status"] == "published"

    def test_update_with_null_title_rejected(self, client):
        article_id = client.post("/api/admin/articles", json=_payload()).json()["id"]

        resp = client.put(f"/api/admin/articles/{article_id}", json={"title": None})

        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "title"}

    def test_delete_removes_memberships(self, client, db, make_category):
        make_category("Kontor")
        article_id = client.post("/api/admin/articles", json=_payload(categories=["Kontor"])).json()["id"]

        assert client.delete(f"/api/admin/articles/{article_id}").status_code == 204
        assert client.get(f"/api/admin/articles/{article_id}").status_code == 404
        assert db.query(ArticleCategory).count() == 0

    def test_admin_list_includes_drafts(self, client, make_article):
        make_article(title="Kladde", status=ArticleStatus.DRAFT)
        make_article(title="Udgivet")
        titles = {a["title"] for a in client.get("/api/admin/articles").json()}
        assert titles == {"Kladde", "Udgivet"}


class TestPublicListing:

    def test_only_published_newest_first(self, client, make_article):
        now = datetime.now(timezone.utc)
        make_article(title="Gammel", published_date=now - timedelta(days=2))
        make_article(title="Ny", published_date=now)
        make_article(title="Kladde", status=ArticleStatus.DRAFT)

        data = client.get("/api/articles").json()

        assert [a["title"] for a in data["articles"]] == ["Ny", "Gammel"]
        assert data["total_items"] == 2
        assert data["pagination"]["pages"] == []
        assert data["pagination"]["total"] == 1

    def test_pagination_window(self, client, make_article):
        now = datetime.now(timezone.utc)
        for i in range(25):
            make_article(title=f"Artikel {i}", published_date=now - timedelta(hours=i))

        data = client.get("/api/articles", params={"page": 2, "per_page": 2}).json()

        assert len(data["articles"]) == 2
        assert data["articles"][0]["title"] == "Artikel 2"
        assert data["total_items"] == 25
        assert data["pagination"] == {
            "pages": [1, 2, 3, "...", 13],
            "current": 2,
            "total": 13,
            "has_previous": True,
            "has_next": True,
        }

    def test_filter_by_category_slug(self, client, make_category, make_article):
        kontor, lager = make_category("Kontor"), make_category("Lager")
        make_article(title="Kontorhus", categories=[kontor])
        make_article(title="Lagerhal", categories=[lager])

        data = client.get("/api/articles", params={"category": "lager"}).json()
        assert [a["title"] for a in data["articles"]] == ["Lagerhal"]

    def test_unknown_category_slug_gives_empty_page(self, client, make_article):
        make_article()
        data = client.get("/api/articles", params={"category": "findes-ikke"}).json()
        assert data["articles"] == []
        assert data["total_items"] == 0

    def test_search_is_case_insensitive(self, client, make_category, make_article):
        make_article(title="Rekordsalg af kontorejendom")
        make_article(title="Andet", content="Intet relevant her.")
        make_article(title="Tredje", categories=[make_category("Hotel")])

        titles = [a["title"] for a in client.get("/api/articles", params={"search": "KONTOR"}).json()["articles"]]
        assert titles == ["Rekordsalg af kontorejendom"]

        titles = [a["title"] for a in client.get("/api/articles", params={"search": "hotel"}).json()["articles"]]
        assert titles == ["Tredje"]

    def test_search_wildcards_match_literally(self, client, make_article):
        make_article(title="Udlejning steg 50% i Aarhus")
        make_article(title="Udlejning steg 500 kvm")
        make_article(title="Nyt lager_hal projekt")
        make_article(title="Nyt lagerhal projekt")

        titles = [a["title"] for a in client.get("/api/articles", params={"search": "50%"}).json()["articles"]]
        assert titles == ["Udlejning steg 50% i Aarhus"]

        titles = [a["title"] for a in client.get("/api/articles", params={"search": "lager_hal"}).json()["articles"]]
        assert titles == ["Nyt lager_hal projekt"]

    def test_list_items_carry_categories_and_excerpt(self, client, make_category, make_article):
        make_article(content="# Titel\nSelve teksten.", categories=[make_category("Kontor")])
        item = client.get("/api/articles").json()["articles"][0]
        assert item["content_preview"] == "Selve teksten."
        assert [c["name"] for c in item["categories"]] == ["Kontor"]


class TestPreviewGating:

    LONG = "Første afsnit. " * 40 + "\n\n" + "Betalt indhold. " * 100

    def test_dev_mode_reader_gets_full_text(self, client, make_article):
        article = make_article(content=self.LONG)
        data = client.get(f"/api/articles/slug/{article.slug}").json()
        assert data["is_preview"] is False
        assert "Betalt indhold" in data["content"]

    def test_anonymous_reader_gets_preview(self, client, auth_on, make_article):
        article = make_article(content=self.LONG)
        data = client.get(f"/api/articles/slug/{article.slug}").json()
        assert data["is_preview"] is True
        assert "Betalt indhold" not in data["content"]
        assert len(data["content"]) <= 400

    def test_signed_in_reader_gets_full_text(self, client, auth_on, make_article, make_user):
        article = make_article(content=self.LONG)
        user = make_user("laeser@example.dk")
        data = client.get(f"/api/articles/slug/{article.slug}", headers=token_headers(user.user_id)).json()
        assert data["is_preview"] is False
        assert "Betalt indhold" in data["content"]

    def test_invalid_token_falls_back_to_preview(self, client, auth_on, make_article):
        article = make_article(content=self.LONG)
        resp = client.get(f"/api/articles/slug/{article.slug}", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 200
        assert resp.json()["is_preview"] is True

    def test_admin_preview_shows_both_cuts(self, client, make_article):
        body = "a" * 390 + "\n\n" + "b" * 610
        article = make_article(content=body, status=ArticleStatus.DRAFT)

        resp = client.get(f"/api/admin/articles/{article.id}/preview", params={"percentage": 40})

        assert resp.status_code == 200
        data = resp.json()
        assert data["total_chars"] == 1002
        assert data["extended_preview"] == "a" * 390
        assert data["preview"] == "a" * 390
        assert data["percentage"] == 40

    def test_admin_preview_rejects_bad_percentage(self, client, make_article):
        article = make_article()
        resp = client.get(f"/api/admin/articles/{article.id}/preview", params={"percentage": 0})
        assert resp.status_code == 422

    def test_draft_is_not_public(self, client, make_article):
        article = make_article(status=ArticleStatus.DRAFT)
        resp = client.get(f"/api/articles/slug/{article.slug}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "ARTICLE_NOT_FOUND"


class TestRelated:

    def test_shares_a_category(self, client, make_category, make_article):
        kontor, lager = make_category("Kontor"), make_category("Lager")
        main = make_article(title="Hoved", categories=[kontor])
        make_article(title="Relateret", categories=[kontor, lager])
        make_article(title="Urelateret", categories=[lager])
        make_article(title="Kladde", status=ArticleStatus.DRAFT, categories=[kontor])

        titles = [a["title"] for a in client.get(f"/api/articles/{main.id}/related").json()]
        assert titles == ["Relateret"]


class TestAdminAuth:

    def test_admin_routes_require_token(self, client, auth_on):
        assert client.get("/api/admin/articles").status_code == 401

    def test_admin_routes_reject_readers(self, client, auth_on, make_user):
        user = make_user("laeser@example.dk")
        resp = client.get("/api/admin/articles", headers=token_headers(user.user_id))
        assert resp.status_code == 403

    def test_admin_token_accepted(self, client, auth_on, make_user):
        admin = make_user("admin@example.dk", role=UserRole.ADMIN)
        resp = client.get("/api/admin/articles", headers=token_headers(admin.user_id, "admin"))
        assert resp.status_code == 200
