# showreel/services/biography_service.py
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from showreel.db.enums import MediaKind
from showreel.logger import get_logger
from showreel.models.biography import Biography
from showreel.schemas.content import BiographyUpdate
from showreel.services.media_store import MediaStore
from showreel.services.upload_validation import UploadedFile, validate_image

logger = get_logger(__name__)

PROFILE_FOLDER = "portfolio/profile"


class BiographyService:
    """Singleton biography; saves are upserts and list fields replace wholesale."""

    def __init__(self, db: Session, media_store: Optional[MediaStore] = None):
        self.db = db
        self.media_store = media_store

    def get_biography(self) -> Optional[Biography]:
        return self.db.scalar(select(Biography).order_by(Biography.id.asc()).limit(1))

    def _get_or_create(self) -> Biography:
        bio = self.get_biography()
        if bio is None:
            bio = Biography()
            self.db.add(bio)
        return bio

    def save_biography(self, data: BiographyUpdate, *, operator_id: Optional[str] = None) -> Biography:
        bio = self._get_or_create()
        for name, value in data.model_dump(exclude_unset=True).items():
            setattr(bio, name, value)
        bio.updated_by = operator_id
        self.db.flush()
        return bio

    def replace_photo(self, photo: UploadedFile, *, operator_id: Optional[str] = None) -> Tuple[Biography, Optional[str]]:
        '''
        上传新头像并写入 profile_image_url
        :return: (biography, 旧头像 URL)；旧图片在调用方提交后交给 discard_photo
        '''
        validate_image(photo, field="photo")
        if self.media_store is None:
            raise RuntimeError("BiographyService needs a media store for photo uploads")

        result = self.media_store.upload_image(photo.data, filename=photo.filename, folder=PROFILE_FOLDER)
        bio = self._get_or_create()
        previous_url = bio.profile_image_url
        bio.profile_image_url = result.url
        bio.updated_by = operator_id
        self.db.flush()
        logger.info(f"Profile photo replaced: {result.content_id}")
        return bio, previous_url

    def discard_photo(self, url: Optional[str]) -> None:
        if not url or self.media_store is None:
            return
        content_id = self.media_store.content_id_from_url(url)
        if content_id:
            self.media_store.delete_media(content_id, MediaKind.image)
