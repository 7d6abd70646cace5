# showreel/services/media_store.py
"""
Media Store adapter.

The rest of the app sees only ``MediaStore``: upload, derive a thumbnail URL,
delete. ``CloudinaryMediaStore`` is the production implementation; tests
inject their own subclass.
"""
import io
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import RateLimited

from showreel.db.enums import MediaKind
from showreel.errors import UploadError, UploadErrorCause
from showreel.logger import get_logger

logger = get_logger(__name__)

DEFAULT_UPLOAD_TIMEOUT_SECONDS = 300
DEFAULT_FOLDER = "portfolio"
# 超过该大小使用分片上传
LARGE_UPLOAD_THRESHOLD = 20 * 1024 * 1024
THUMBNAIL_WIDTH = 800
THUMBNAIL_HEIGHT = 450

_VERSION_SEGMENT = re.compile(r"^v\d+$")
_TRANSFORM_SEGMENT = re.compile(r"^[a-z]{1,3}_[^/]+(,[a-z]{1,3}_[^/]+)*$")


@dataclass
class UploadResult:
    content_id: str
    url: str
    bytes: Optional[int] = None
    duration: Optional[int] = None


class MediaStore:
    def upload_video(self, data: bytes, *, filename: str, folder: str = DEFAULT_FOLDER) -> UploadResult:
        raise NotImplementedError

    def upload_image(self, data: bytes, *, filename: str, folder: str = DEFAULT_FOLDER) -> UploadResult:
        raise NotImplementedError

    def derive_thumbnail(self, content_id: str, at_offset: float = 1.0) -> str:
        raise NotImplementedError

    def delete_media(self, content_id: str, kind: MediaKind) -> bool:
        """Best-effort removal. Never raises; returns False on failure."""
        raise NotImplementedError

    def content_id_from_url(self, url: Optional[str]) -> Optional[str]:
        raise NotImplementedError


def classify_upload_failure(exc: Exception) -> UploadErrorCause:
    '''
    把 SDK / 网络异常映射为 UploadErrorCause
    Cloudinary 把大多数传输错误包装成通用 Error，只能按消息判断
    '''
    if isinstance(exc, RateLimited):
        return UploadErrorCause.REMOTE_QUOTA_EXCEEDED
    if isinstance(exc, TimeoutError):
        return UploadErrorCause.REMOTE_TIMEOUT
    message = str(exc).lower()
    if "timed out" in message or "timeout" in message:
        return UploadErrorCause.REMOTE_TIMEOUT
    if "quota" in message or "rate limit" in message or "limit exceeded" in message:
        return UploadErrorCause.REMOTE_QUOTA_EXCEEDED
    if "too large" in message or "file size" in message:
        return UploadErrorCause.TOO_LARGE
    return UploadErrorCause.UNKNOWN


class CloudinaryMediaStore(MediaStore):

    def __init__(
        self,
        *,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: int = DEFAULT_UPLOAD_TIMEOUT_SECONDS,
    ):
        if cloud_name and cloud_name.startswith("cloudinary://"):
            # CLOUDINARY_CLOUD_NAME 里误填了完整 URL
            cloud_name = urlparse(cloud_name).hostname
        if cloud_name:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True,
            )
        self.timeout = timeout
        logger.info(f"CloudinaryMediaStore initialized (cloud={cloudinary.config().cloud_name or 'NOT_SET'})")

    # ======================================================
    # Upload
    # ======================================================

    def _upload(self, data: bytes, *, resource_type: str, filename: str, folder: str) -> dict:
        options = {
            "resource_type": resource_type,
            "folder": folder,
            "use_filename": False,
            "unique_filename": True,
            "timeout": self.timeout,
        }
        logger.info(f"Uploading {resource_type} '{filename}' ({len(data)} bytes) to media store")
        try:
            if resource_type == "video" and len(data) > LARGE_UPLOAD_THRESHOLD:
                options["eager_async"] = True
                return cloudinary.uploader.upload_large(io.BytesIO(data), **options)
            return cloudinary.uploader.upload(io.BytesIO(data), **options)
        except (CloudinaryError, OSError) as exc:
            cause = classify_upload_failure(exc)
            logger.error(f"Media upload failed for '{filename}': cause={cause.value} error={exc}")
            raise UploadError(f"Upload of '{filename}' failed: {exc}", cause=cause) from exc

    def upload_video(self, data: bytes, *, filename: str, folder: str = DEFAULT_FOLDER) -> UploadResult:
        result = self._upload(data, resource_type="video", filename=filename, folder=folder)
        duration = result.get("duration")
        return UploadResult(
            content_id=result["public_id"],
            url=result["secure_url"],
            bytes=result.get("bytes"),
            duration=int(duration) if duration is not None else None,
        )

    def upload_image(self, data: bytes, *, filename: str, folder: str = DEFAULT_FOLDER) -> UploadResult:
        result = self._upload(data, resource_type="image", filename=filename, folder=folder)
        return UploadResult(
            content_id=result["public_id"],
            url=result["secure_url"],
            bytes=result.get("bytes"),
        )

    # ======================================================
    # Derive
    # ======================================================

    def derive_thumbnail(self, content_id: str, at_offset: float = 1.0) -> str:
        url, _ = cloudinary.utils.cloudinary_url(
            content_id,
            resource_type="video",
            width=THUMBNAIL_WIDTH,
            height=THUMBNAIL_HEIGHT,
            crop="fill",
            quality="auto",
            format="jpg",
            start_offset=str(max(at_offset, 0)),
            secure=True,
        )
        return url

    # ======================================================
    # Delete
    # ======================================================

    def delete_media(self, content_id: str, kind: MediaKind) -> bool:
        try:
            result = cloudinary.uploader.destroy(content_id, resource_type=kind.value, invalidate=True)
        except (CloudinaryError, OSError) as exc:
            logger.warning(f"Failed to delete {kind.value} '{content_id}' from media store: {exc}")
            return False
        ok = result.get("result") in ("ok", "not found")
        if not ok:
            logger.warning(f"Media store refused delete of {kind.value} '{content_id}': {result}")
        return ok

    def content_id_from_url(self, url: Optional[str]) -> Optional[str]:
        '''
        从 delivery URL 反推 public_id：
        https://res.cloudinary.com/<cloud>/video/upload/v123/portfolio/abc.mp4 -> portfolio/abc
        '''
        if not url:
            return None
        path = urlparse(url).path
        if "/upload/" not in path:
            return None
        tail = path.split("/upload/", 1)[1]
        segments = [s for s in tail.split("/") if s]
        versions = [i for i, s in enumerate(segments) if _VERSION_SEGMENT.match(s)]
        if versions:
            segments = segments[versions[0] + 1:]
        else:
            # 无版本号时去掉前置变换参数段
            while segments and _TRANSFORM_SEGMENT.match(segments[0]):
                segments.pop(0)
        if not segments:
            return None
        public_id = "/".join(segments)
        return public_id.rsplit(".", 1)[0]
