# showreel/services/upload_validation.py
from dataclasses import dataclass
from typing import Optional

from showreel.errors import UploadError, UploadErrorCause, ValidationError

MB = 1024 * 1024

MAX_VIDEO_BYTES = 100 * MB
MAX_IMAGE_BYTES = 10 * MB

ALLOWED_VIDEO_TYPES = frozenset({
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/avi",
})
ALLOWED_IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
})


@dataclass
class UploadedFile:
    """A file received from the admin client, fully buffered."""
    data: bytes
    filename: str
    mimetype: str

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_storage(cls, storage) -> Optional["UploadedFile"]:
        """Build from a werkzeug ``FileStorage``; None when no file was sent."""
        if storage is None or not storage.filename:
            return None
        return cls(
            data=storage.read(),
            filename=storage.filename,
            mimetype=(storage.mimetype or "").lower(),
        )


def _validate(file: UploadedFile, *, field: str, max_bytes: int, allowed: frozenset, label: str) -> UploadedFile:
    if file.size > max_bytes:
        raise UploadError(
            f"{label} exceeds the {max_bytes // MB}MB limit",
            cause=UploadErrorCause.TOO_LARGE,
        )
    if file.mimetype not in allowed:
        raise ValidationError(
            f"Unsupported {label.lower()} type '{file.mimetype or 'unknown'}'",
            field=field,
        )
    return file


def validate_video(file: UploadedFile, field: str = "video") -> UploadedFile:
    return _validate(file, field=field, max_bytes=MAX_VIDEO_BYTES, allowed=ALLOWED_VIDEO_TYPES, label="Video")


def validate_image(file: UploadedFile, field: str = "thumbnail") -> UploadedFile:
    return _validate(file, field=field, max_bytes=MAX_IMAGE_BYTES, allowed=ALLOWED_IMAGE_TYPES, label="Image")
