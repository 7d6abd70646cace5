# tests/test_public_api.py
import io

from showreel.db.session import get_session
from showreel.models.project import Project
from showreel.services.cache_service import CacheKeys
from tests.conftest import create_project


def test_health(client):
    body = client.get("/api/health").get_json()
    assert body["status"] == "ok"
    assert body["version"]


def test_public_list_only_published(client, admin_headers):
    create_project(client, admin_headers, "Draft", featured=True)
    live = create_project(client, admin_headers, "Live", with_video=True)
    processing = create_project(client, admin_headers, "Processing")
    client.post(
        "/api/admin/upload",
        data={"video": (io.BytesIO(b"\x00" * 64), "v.mp4", "video/mp4"), "projectId": str(processing["id"])},
        headers=admin_headers,
        content_type="multipart/form-data",
    )

    body = client.get("/api/projects").get_json()
    assert [p["title"] for p in body] == ["Live"]
    assert all(p["status"] == "published" for p in body)
    assert body[0]["id"] == live["id"]


def test_public_project_404_unless_published(client, admin_headers):
    draft = create_project(client, admin_headers, "Draft")
    live = create_project(client, admin_headers, "Live", with_video=True)

    assert client.get(f"/api/projects/{draft['id']}").status_code == 404
    assert client.get("/api/projects/12345").status_code == 404
    body = client.get(f"/api/projects/{live['id']}").get_json()
    assert body["videoUrl"] == live["videoUrl"]


def test_unpublished_project_disappears(client, admin_headers):
    live = create_project(client, admin_headers, "Live", with_video=True)
    assert client.get(f"/api/projects/{live['id']}").status_code == 200

    client.patch(f"/api/admin/projects/{live['id']}", json={"status": "draft"}, headers=admin_headers)
    assert client.get(f"/api/projects/{live['id']}").status_code == 404
    assert client.get("/api/projects").get_json() == []


def test_featured_list(client, admin_headers):
    create_project(client, admin_headers, "Plain", with_video=True)
    create_project(client, admin_headers, "Star", with_video=True, featured="true")
    create_project(client, admin_headers, "Draft star", featured=True)
    assert [p["title"] for p in client.get("/api/projects/featured").get_json()] == ["Star"]


def test_category_filter_tolerates_unknown_slugs(client, admin_headers):
    create_project(client, admin_headers, "Clip", with_video=True, category="music-video")
    create_project(client, admin_headers, "Ad", with_video=True, category="commercial")

    assert [p["title"] for p in client.get("/api/projects?category=music-video").get_json()] == ["Clip"]
    assert client.get("/api/projects?category=does-not-exist").get_json() == []


def test_category_filter_matches_name_or_slug(client, admin_headers):
    client.post("/api/admin/categories", json={"name": "Music Video"}, headers=admin_headers)
    create_project(client, admin_headers, "Clip", with_video=True, category="Music Video")
    assert [p["title"] for p in client.get("/api/projects?category=music-video").get_json()] == ["Clip"]


def test_stats(client, admin_headers):
    create_project(client, admin_headers, "Draft", category="x")
    create_project(client, admin_headers, "Live", with_video=True, category="brand", featured="true")
    body = client.get("/api/stats").get_json()
    assert body["totalProjects"] == 1
    assert body["featuredProjects"] == 1
    assert body["categories"] == ["brand"]
    assert body["latestProject"]["title"] == "Live"


# =============================================================================
# CACHE
# =============================================================================

def test_list_served_from_cache_until_invalidated(client, admin_headers, cache):
    live = create_project(client, admin_headers, "Before", with_video=True)
    assert client.get("/api/projects").get_json()[0]["title"] == "Before"
    assert CacheKeys.PUBLISHED_PROJECTS in cache

    # 绕过服务直接改库：缓存仍返回旧值
    session = get_session()
    try:
        session.get(Project, live["id"]).title = "Sneaky"
        session.commit()
    finally:
        session.close()
    assert client.get("/api/projects").get_json()[0]["title"] == "Before"

    # 经过 API 的修改会失效缓存，下一次读取命中数据库
    client.patch(f"/api/admin/projects/{live['id']}", json={"description": "d"}, headers=admin_headers)
    assert CacheKeys.PUBLISHED_PROJECTS not in cache
    assert client.get("/api/projects").get_json()[0]["title"] == "Sneaky"


def test_every_mutation_invalidates_public_reads(client, admin_headers, cache):
    a = create_project(client, admin_headers, "A", with_video=True)

    def warm():
        client.get("/api/projects")
        client.get("/api/projects/featured")
        client.get("/api/stats")
        client.get(f"/api/projects/{a['id']}")
        assert CacheKeys.project(a["id"]) in cache

    def assert_cold():
        for key in (CacheKeys.PUBLISHED_PROJECTS, CacheKeys.FEATURED_PROJECTS, CacheKeys.PORTFOLIO_STATS):
            assert key not in cache
        assert CacheKeys.project(a["id"]) not in cache

    warm()
    b = create_project(client, admin_headers, "B", with_video=True)
    assert_cold()

    warm()
    client.patch(f"/api/admin/projects/{a['id']}", json={"featured": True}, headers=admin_headers)
    assert_cold()
    assert [p["title"] for p in client.get("/api/projects/featured").get_json()] == ["A"]

    warm()
    client.post("/api/admin/projects/reorder", json={"updates": [
        {"id": a["id"], "displayOrder": 0}, {"id": b["id"], "displayOrder": 1},
    ]}, headers=admin_headers)
    assert_cold()
    assert client.get(f"/api/projects/{a['id']}").get_json()["displayOrder"] == 0

    warm()
    client.delete(f"/api/admin/projects/{b['id']}", headers=admin_headers)
    assert_cold()
    assert [p["title"] for p in client.get("/api/projects").get_json()] == ["A"]


def test_single_project_cache_refreshes_after_edit(client, admin_headers):
    live = create_project(client, admin_headers, "Old title", with_video=True)
    assert client.get(f"/api/projects/{live['id']}").get_json()["title"] == "Old title"
    client.patch(f"/api/admin/projects/{live['id']}", json={"title": "New title"}, headers=admin_headers)
    assert client.get(f"/api/projects/{live['id']}").get_json()["title"] == "New title"
