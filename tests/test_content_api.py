# tests/test_content_api.py
import io

from showreel.db.enums import SubmissionStatus, UserRole
from showreel.db.session import get_session
from showreel.models.contact import ContactSubmission
from showreel.services.user_service import UserService
from tests.conftest import count_rows, create_project


# =============================================================================
# LOGIN
# =============================================================================

def _seed_user(email, password, role=UserRole.admin):
    session = get_session()
    try:
        UserService(session).create_user(email=email, password=password, role=role)
        session.commit()
    finally:
        session.close()


def test_login_issues_admin_token(client):
    _seed_user("Owner@Example.com", "correct horse")
    response = client.post("/api/login", json={"email": "owner@example.com", "password": "correct horse"})
    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["role"] == "admin"

    headers = {"Authorization": f"Bearer {body['token']}"}
    me = client.get("/api/auth/user", headers=headers).get_json()
    assert me["email"] == "owner@example.com"
    assert client.get("/api/admin/projects", headers=headers).status_code == 200


def test_login_bad_password_is_401(client):
    _seed_user("owner@example.com", "correct horse")
    response = client.post("/api/login", json={"email": "owner@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert client.post("/api/login", json={"email": "nobody@example.com", "password": "x"}).status_code == 401


def test_auth_user_requires_token(client):
    assert client.get("/api/auth/user").status_code == 401


# =============================================================================
# CATEGORIES
# =============================================================================

def test_category_crud(client, admin_headers):
    response = client.post("/api/admin/categories", json={"name": "Music Video", "displayOrder": 2}, headers=admin_headers)
    assert response.status_code == 201
    music = response.get_json()
    assert music["slug"] == "music-video"

    client.post("/api/admin/categories", json={"name": "Brand", "slug": "brand", "displayOrder": 1}, headers=admin_headers)
    assert [c["name"] for c in client.get("/api/categories").get_json()] == ["Brand", "Music Video"]

    response = client.patch(f"/api/admin/categories/{music['id']}", json={"displayOrder": 0}, headers=admin_headers)
    assert response.status_code == 200
    assert [c["name"] for c in client.get("/api/categories").get_json()] == ["Music Video", "Brand"]


def test_duplicate_category_is_409(client, admin_headers):
    client.post("/api/admin/categories", json={"name": "Brand"}, headers=admin_headers)
    response = client.post("/api/admin/categories", json={"name": "brand"}, headers=admin_headers)
    assert response.status_code == 409


def test_category_name_length_validated(client, admin_headers):
    assert client.post("/api/admin/categories", json={"name": ""}, headers=admin_headers).status_code == 400
    assert client.post("/api/admin/categories", json={"name": "x" * 51}, headers=admin_headers).status_code == 400


def test_deleting_category_keeps_projects(client, admin_headers):
    category = client.post("/api/admin/categories", json={"name": "Doc"}, headers=admin_headers).get_json()
    create_project(client, admin_headers, "Film", with_video=True, category="doc")

    assert client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers).status_code == 204
    assert client.get("/api/categories").get_json() == []
    assert [p["title"] for p in client.get("/api/projects?category=doc").get_json()] == ["Film"]
    assert client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers).status_code == 404


def test_category_admin_requires_admin(client, user_headers):
    assert client.post("/api/admin/categories", json={"name": "X"}, headers=user_headers).status_code == 403


# =============================================================================
# BIOGRAPHY
# =============================================================================

def test_biography_defaults_when_missing(client):
    body = client.get("/api/biography").get_json()
    assert body["heroTitle"] is None
    assert body["skills"] == []


def test_biography_upsert_replaces_lists(client, admin_headers):
    first = {"heroTitle": "Editor", "bioText": "Cuts things.", "skills": ["Premiere", "Resolve"], "clients": ["Nike"]}
    assert client.put("/api/admin/biography", json=first, headers=admin_headers).status_code == 200

    response = client.put("/api/admin/biography", json={"skills": ["Avid"]}, headers=admin_headers)
    body = response.get_json()
    assert body["skills"] == ["Avid"]
    assert body["clients"] == ["Nike"]
    assert body["heroTitle"] == "Editor"

    assert client.get("/api/biography").get_json()["skills"] == ["Avid"]


def test_biography_photo_upload_replaces_previous(client, admin_headers, media_store):
    def upload(name):
        return client.post(
            "/api/admin/biography/photo",
            data={"photo": (io.BytesIO(b"\x89PNG" + b"\x00" * 32), name, "image/png")},
            headers=admin_headers,
            content_type="multipart/form-data",
        )

    first = upload("me.png").get_json()["profileImageUrl"]
    second = upload("me2.png").get_json()["profileImageUrl"]
    assert first != second
    assert media_store.deleted == [(media_store.uploads[0][0], media_store.uploads[0][1])]
    assert client.get("/api/biography").get_json()["profileImageUrl"] == second


def test_biography_photo_rejects_wrong_type(client, admin_headers):
    response = client.post(
        "/api/admin/biography/photo",
        data={"photo": (io.BytesIO(b"GIF89a"), "me.gif", "image/gif")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


# =============================================================================
# CONTACT
# =============================================================================

def test_contact_settings_defaults_and_upsert(client, admin_headers):
    assert client.get("/api/contact/settings").get_json() == {"ctaText": "Let's Chat.", "formEnabled": True}

    payload = {"ctaText": "Say hi", "destinationEmail": "me@example.com", "formEnabled": True}
    assert client.put("/api/admin/contact/settings", json=payload, headers=admin_headers).status_code == 200
    client.put("/api/admin/contact/settings", json={**payload, "ctaText": "Hello"}, headers=admin_headers)

    admin_view = client.get("/api/admin/contact/settings", headers=admin_headers).get_json()
    assert admin_view == {"ctaText": "Hello", "formEnabled": True, "destinationEmail": "me@example.com"}
    assert "destinationEmail" not in client.get("/api/contact/settings").get_json()


def test_contact_settings_validates_email(client, admin_headers):
    payload = {"ctaText": "Hi", "destinationEmail": "not-an-email", "formEnabled": True}
    assert client.put("/api/admin/contact/settings", json=payload, headers=admin_headers).status_code == 400


MESSAGE = {"name": "Ana", "email": "ana@example.com", "message": "I would love to work with you."}


def test_contact_submission_sent(client, mail_service):
    response = client.post("/api/contact", json=MESSAGE)
    assert response.status_code == 200
    assert mail_service.sent[0]["destination"] == "hello@example.com"

    session = get_session()
    try:
        submission = session.query(ContactSubmission).one()
        assert submission.status == SubmissionStatus.sent
        assert submission.processed_at is not None
    finally:
        session.close()


def test_contact_delivery_failure_is_recorded_and_500(client, mail_service):
    mail_service.succeed = False
    response = client.post("/api/contact", json=MESSAGE)
    assert response.status_code == 500
    assert response.get_json()["errorType"] == "DEPENDENCY_ERROR"
    assert count_rows(ContactSubmission, ContactSubmission.status == SubmissionStatus.failed) == 1


def test_contact_disabled_is_503(client, admin_headers, mail_service):
    payload = {"ctaText": "Closed", "destinationEmail": "me@example.com", "formEnabled": False}
    client.put("/api/admin/contact/settings", json=payload, headers=admin_headers)

    response = client.post("/api/contact", json=MESSAGE)
    assert response.status_code == 503
    assert count_rows(ContactSubmission) == 0
    assert mail_service.sent == []


def test_contact_validation(client):
    assert client.post("/api/contact", json={**MESSAGE, "email": "nope"}).status_code == 400
    assert client.post("/api/contact", json={**MESSAGE, "message": "short"}).status_code == 400
    assert count_rows(ContactSubmission) == 0
