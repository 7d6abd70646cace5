from showreel.models.video_upload import VideoUpload
from showreel.schemas.base import BaseDTO
from typing import Optional
from datetime import datetime


class VideoUploadDTO(BaseDTO):
    id: int
    project_id: Optional[int]
    original_file_name: str
    file_name: str
    file_size: Optional[int]
    mime_type: Optional[str]
    duration: Optional[int]
    upload_status: str
    processing_progress: int
    error_message: Optional[str]
    thumbnail_file_name: Optional[str]
    uploaded_by: Optional[str]
    description: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_orm_model(cls, upload: VideoUpload) -> "VideoUploadDTO":
        return cls(
            id=upload.id,
            project_id=upload.project_id,
            original_file_name=upload.original_file_name,
            file_name=upload.file_name,
            file_size=upload.file_size,
            mime_type=upload.mime_type,
            duration=upload.duration,
            upload_status=upload.upload_status.value,
            processing_progress=upload.processing_progress or 0,
            error_message=upload.error_message,
            thumbnail_file_name=upload.thumbnail_file_name,
            uploaded_by=upload.uploaded_by,
            description=upload.description,
            created_at=upload.created_at,
        )
