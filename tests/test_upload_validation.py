# tests/test_upload_validation.py
import pytest
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import RateLimited

from showreel.errors import UploadError, UploadErrorCause, ValidationError
from showreel.services.media_store import CloudinaryMediaStore, classify_upload_failure
from showreel.services.upload_validation import (
    MAX_IMAGE_BYTES,
    UploadedFile,
    validate_image,
    validate_video,
)


@pytest.mark.parametrize("mimetype", ["video/mp4", "video/quicktime", "video/x-msvideo", "video/avi"])
def test_accepts_supported_video_types(mimetype):
    file = UploadedFile(data=b"\x00" * 10, filename="a", mimetype=mimetype)
    assert validate_video(file) is file


def test_rejects_unsupported_video_type_as_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        validate_video(UploadedFile(data=b"\x00", filename="a.mkv", mimetype="video/x-matroska"))
    assert exc_info.value.status_code == 400
    assert exc_info.value.details[0]["field"] == "video"


def test_oversize_video_is_too_large(monkeypatch):
    monkeypatch.setattr("showreel.services.upload_validation.MAX_VIDEO_BYTES", 100)
    with pytest.raises(UploadError) as exc_info:
        validate_video(UploadedFile(data=b"\x00" * 101, filename="a.mp4", mimetype="video/mp4"))
    assert exc_info.value.cause == UploadErrorCause.TOO_LARGE
    assert exc_info.value.status_code == 413


def test_image_limit_is_ten_megabytes():
    at_limit = UploadedFile(data=b"\x00" * MAX_IMAGE_BYTES, filename="a.png", mimetype="image/png")
    assert validate_image(at_limit) is at_limit

    over = UploadedFile(data=b"\x00" * (MAX_IMAGE_BYTES + 1), filename="a.png", mimetype="image/png")
    with pytest.raises(UploadError):
        validate_image(over)


def test_rejects_gif_thumbnail():
    with pytest.raises(ValidationError):
        validate_image(UploadedFile(data=b"GIF89a", filename="a.gif", mimetype="image/gif"))


@pytest.mark.parametrize("exc, cause", [
    (RateLimited("Rate Limit Exceeded"), UploadErrorCause.REMOTE_QUOTA_EXCEEDED),
    (CloudinaryError("Monthly quota exceeded"), UploadErrorCause.REMOTE_QUOTA_EXCEEDED),
    (CloudinaryError("Unexpected error - Read timed out"), UploadErrorCause.REMOTE_TIMEOUT),
    (TimeoutError(), UploadErrorCause.REMOTE_TIMEOUT),
    (CloudinaryError("File size too large. Got 120000000."), UploadErrorCause.TOO_LARGE),
    (CloudinaryError("Invalid image file"), UploadErrorCause.UNKNOWN),
])
def test_classify_upload_failure(exc, cause):
    assert classify_upload_failure(exc) == cause


@pytest.mark.parametrize("url, content_id", [
    ("https://res.cloudinary.com/demo/video/upload/v1712/portfolio/abc123.mp4", "portfolio/abc123"),
    ("https://res.cloudinary.com/demo/image/upload/c_fill,w_800/v1/portfolio/profile/me.jpg", "portfolio/profile/me"),
    ("https://res.cloudinary.com/demo/video/upload/so_1.0/portfolio/abc.jpg", "portfolio/abc"),
    ("https://vimeo.com/12345", None),
    (None, None),
])
def test_content_id_from_url(url, content_id):
    assert CloudinaryMediaStore().content_id_from_url(url) == content_id


def test_derived_thumbnail_url_targets_requested_frame():
    store = CloudinaryMediaStore(cloud_name="demo", api_key="k", api_secret="s")
    url = store.derive_thumbnail("portfolio/abc", at_offset=2.5)
    assert url.startswith("https://res.cloudinary.com/demo/video/upload/")
    assert "so_2.5" in url
    assert url.endswith("portfolio/abc.jpg")
