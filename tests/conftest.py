# tests/conftest.py
"""
Pytest configuration and shared fixtures.

Every test gets a fresh app on in-memory SQLite, a fake media store and a
fake mail service, so no network access is needed.

Run:
    pytest -v
"""
import io

import pytest
from sqlalchemy import func, select

from showreel.app_factory import create_app
from showreel.db.enums import MediaKind, UserRole
from showreel.db.session import get_session
from showreel.errors import UploadError
from showreel.extensions import EXTENSION_KEY
from showreel.services.mail_service import MailService
from showreel.services.media_store import MediaStore, UploadResult
from showreel.services.upload_validation import UploadedFile
from showreel.services.user_service import UserService

# =============================================================================
# TEST DOUBLES
# =============================================================================

MEDIA_BASE = "https://media.test"


class FakeMediaStore(MediaStore):
    """In-memory media store. Set ``fail_video`` / ``fail_image`` to a cause to simulate failures."""

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_video = None
        self.fail_image = None
        self._seq = 0

    def _content_id(self, filename):
        self._seq += 1
        return f"portfolio/{self._seq}-{filename.rsplit('.', 1)[0]}"

    def upload_video(self, data, *, filename, folder="portfolio"):
        if self.fail_video is not None:
            raise UploadError("simulated video failure", cause=self.fail_video)
        content_id = self._content_id(filename)
        self.uploads.append((content_id, MediaKind.video))
        return UploadResult(
            content_id=content_id,
            url=f"{MEDIA_BASE}/video/{content_id}.mp4",
            bytes=len(data),
            duration=42,
        )

    def upload_image(self, data, *, filename, folder="portfolio"):
        if self.fail_image is not None:
            raise UploadError("simulated image failure", cause=self.fail_image)
        content_id = self._content_id(filename)
        self.uploads.append((content_id, MediaKind.image))
        return UploadResult(content_id=content_id, url=f"{MEDIA_BASE}/image/{content_id}.jpg", bytes=len(data))

    def derive_thumbnail(self, content_id, at_offset=1.0):
        return f"{MEDIA_BASE}/video/so_{at_offset}/{content_id}.jpg"

    def delete_media(self, content_id, kind):
        self.deleted.append((content_id, kind))
        return True

    def content_id_from_url(self, url):
        if not url or not url.startswith(MEDIA_BASE):
            return None
        # https://media.test/video/portfolio/1-clip.mp4 -> portfolio/1-clip
        path = url[len(MEDIA_BASE) + 1:].split("/", 1)[1]
        return path.rsplit(".", 1)[0]


class FakeMailService(MailService):
    def __init__(self):
        super().__init__(provider=None)
        self.succeed = True
        self.sent = []

    def send_contact_notification(self, *, destination, name, email, message):
        self.sent.append({"destination": destination, "name": name, "email": email, "message": message})
        return self.succeed


# =============================================================================
# APP FIXTURES
# =============================================================================

@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def mail_service():
    return FakeMailService()


@pytest.fixture
def app(media_store, mail_service):
    app = create_app("testing", overrides={
        "MEDIA_STORE": media_store,
        "MAIL_SERVICE": mail_service,
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def cache(app):
    return app.extensions[EXTENSION_KEY]["cache"]


@pytest.fixture
def cache_policy(app):
    return app.extensions[EXTENSION_KEY]["cache_policy"]


@pytest.fixture
def db(app):
    session = get_session()
    yield session
    session.close()


# =============================================================================
# AUTH FIXTURES
# =============================================================================

def _token_for(app, role):
    session = get_session()
    try:
        user = UserService(session).create_user(
            email=f"{role.value}@example.com",
            password="not-used-in-tests",
            display_name=role.value,
            role=role,
        )
        session.commit()
        return app.extensions[EXTENSION_KEY]["auth_service"].issue_token(user)
    finally:
        session.close()


@pytest.fixture
def admin_headers(app):
    return {"Authorization": f"Bearer {_token_for(app, UserRole.admin)}"}


@pytest.fixture
def user_headers(app):
    return {"Authorization": f"Bearer {_token_for(app, UserRole.user)}"}


# =============================================================================
# HELPERS
# =============================================================================

def video_file(name="clip.mp4", size=2048, mimetype="video/mp4"):
    return UploadedFile(data=b"\x00" * size, filename=name, mimetype=mimetype)


def image_file(name="thumb.png", size=512, mimetype="image/png"):
    return UploadedFile(data=b"\x89PNG" + b"\x00" * size, filename=name, mimetype=mimetype)


def multipart_video(name="clip.mp4", size=2048, mimetype="video/mp4"):
    return (io.BytesIO(b"\x00" * size), name, mimetype)


def create_project(client, headers, title, /, *, with_video=False, **fields):
    """POST /api/admin/projects; returns the response JSON (asserts 201)."""
    if with_video:
        data = {"title": title, **{k: str(v) for k, v in fields.items()}, "video": multipart_video()}
        response = client.post("/api/admin/projects", data=data, headers=headers, content_type="multipart/form-data")
    else:
        response = client.post("/api/admin/projects", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def count_rows(model, *where):
    session = get_session()
    try:
        stmt = select(func.count()).select_from(model)
        if where:
            stmt = stmt.where(*where)
        return session.scalar(stmt)
    finally:
        session.close()
