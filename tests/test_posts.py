import json
from datetime import date, datetime

import pytest

from ippl.post_service import estimate_read_time, slugify, weekly_visits


@pytest.fixture
def draft(editor):
    r = editor.post(
        "/api/posts",
        data={
            "title": "¿Qué es la ansiedad?",
            "content": "<p>Texto del artículo</p>",
            "section": "salud-mental",
            "tags": json.dumps(["ansiedad", "estrés"]),
            "seo": json.dumps({"metaTitle": "Ansiedad"}),
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_slugify_and_read_time():
    assert slugify("¿Qué es la ansiedad?") == "que-es-la-ansiedad"
    assert slugify("!!!") == "post"
    assert estimate_read_time("palabra " * 450) == "3 min"
    assert estimate_read_time("") == "1 min"


def test_weekly_visits_last_item_is_today():
    today = date(2025, 3, 10)
    views = [datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 18), datetime(2025, 3, 4), datetime(2025, 3, 1)]
    assert weekly_visits(views, today) == [1, 0, 0, 0, 0, 0, 2]


def test_create_draft(draft):
    assert draft["slug"] == "que-es-la-ansiedad"
    assert draft["status"] == "draft"
    assert draft["publishedAt"] is None
    assert draft["readTime"] == "1 min"
    assert draft["tags"] == ["ansiedad", "estrés"]
    assert draft["seo"]["metaTitle"] == "Ansiedad"
    assert draft["authorName"] == "Contenidos"


def test_create_requires_title_content_section(editor):
    r = editor.post("/api/posts", data={"title": "Sin contenido", "section": "blog"})
    assert r.status_code == 400


def test_bad_tags_json(editor):
    r = editor.post("/api/posts", data={"title": "T", "content": "C", "section": "s", "tags": "[no json"})
    assert r.status_code == 400


def test_professional_cannot_create(pro):
    assert pro.post("/api/posts", data={"title": "T", "content": "C", "section": "s"}).status_code == 403


def test_duplicate_titles_get_unique_slugs(editor, draft):
    r = editor.post("/api/posts", data={"title": "¿Qué es la ansiedad?", "content": "Otro", "section": "blog"})
    assert r.json()["slug"] == "que-es-la-ansiedad-2"


def test_publish_rule(editor, anon, draft):
    assert anon.get("/api/posts").json() == []

    r = editor.put(f"/api/posts/{draft['id']}", data={"status": "published"})
    published_at = r.json()["publishedAt"]
    assert published_at is not None
    assert [p["id"] for p in anon.get("/api/posts").json()] == [draft["id"]]
    assert anon.get(f"/api/posts/slug/{draft['slug']}").json()["post"]["id"] == draft["id"]

    # otra edición no cambia la fecha de publicación
    r = editor.put(f"/api/posts/{draft['id']}", data={"excerpt": "Resumen"})
    assert r.json()["publishedAt"] == published_at

    r = editor.put(f"/api/posts/{draft['id']}", data={"status": "draft"})
    assert r.json()["publishedAt"] is None
    assert anon.get(f"/api/posts/slug/{draft['slug']}").status_code == 404


def test_published_on_create(editor):
    r = editor.post("/api/posts", data={"title": "T", "content": "C", "section": "s", "status": "published"})
    assert r.json()["publishedAt"] is not None


def test_title_change_regenerates_slug(editor, draft):
    r = editor.put(f"/api/posts/{draft['id']}", data={"title": "Depresión en adolescentes"})
    assert r.json()["slug"] == "depresion-en-adolescentes"


def test_thumbnail_upload(editor):
    r = editor.post(
        "/api/posts",
        data={"title": "Con imagen", "content": "C", "section": "s"},
        files={"thumbnail": ("portada.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 201
    thumb = r.json()["thumbnail"]
    assert thumb.startswith("/uploads/posts/") and thumb.endswith(".png")
    assert editor.get(thumb).status_code == 200


def test_delete_author_or_admin(editor, pro, admin, draft):
    assert pro.delete(f"/api/posts/{draft['id']}").status_code == 403
    assert editor.delete(f"/api/posts/{draft['id']}").status_code == 204
    assert admin.get(f"/api/posts/{draft['id']}").status_code == 404
    assert editor.get("/api/posts/all").json() == []


def test_likes(anon, pro, draft):
    assert anon.post(f"/api/posts/{draft['id']}/like").json()["likes"] == 1

    r = pro.post(f"/api/posts/{draft['id']}/toggle-like")
    assert r.json() == {"likes": 2, "isLiked": True}
    assert pro.get(f"/api/posts/{draft['id']}/check-like").json() == {"isLiked": True}

    r = pro.post(f"/api/posts/{draft['id']}/toggle-like")
    assert r.json() == {"likes": 1, "isLiked": False}


def test_views_counted_once_per_user(pro, admin, draft):
    assert pro.get(f"/api/posts/{draft['id']}/check-view").json() == {"isViewed": False}
    assert pro.post(f"/api/posts/{draft['id']}/increment-view").json() == {"views": 1, "isViewed": True}
    assert pro.post(f"/api/posts/{draft['id']}/increment-view").json()["views"] == 1
    assert admin.post(f"/api/posts/{draft['id']}/increment-view").json()["views"] == 2
    assert pro.get(f"/api/posts/{draft['id']}/check-view").json() == {"isViewed": True}

    stats = admin.get("/api/posts/stats").json()
    assert stats["totalViews"] == 2
    assert stats["totalPosts"] == 1
    assert len(stats["weeklyVisits"]) == 7
    assert stats["weeklyVisits"][-1] == 2
