# showreel/models/video_upload.py
from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from showreel.db.base import Base
from showreel.db.enums import UploadStatus
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional


class VideoUpload(Base):
    __tablename__ = "video_uploads"
    # =========
    # 🔒 Immutable facts
    # =========
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="VideoUpload ID")

    # 删除 Project 前必须先删除其 VideoUpload（无 ON DELETE CASCADE）
    project_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("projects.id"),
        nullable=True,
        index=True,
        comment="Project this upload is bound to, if any",
    )

    original_file_name: Mapped[str] = mapped_column(Text, nullable=False, comment="Filename as uploaded by the admin")

    file_name: Mapped[str] = mapped_column(Text, nullable=False, comment="Remote content id in the media store")

    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Size in bytes")
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Video duration in seconds")

    uploaded_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, comment="User ID of the uploader")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp"
    )

    # =========
    # 🔁 System-maintained fields
    # =========
    '''
    upload_status:
        uploading -> processing -> completed
                  -> failed
    '''
    upload_status: Mapped[UploadStatus] = mapped_column(
        Enum(UploadStatus, name="upload_status"),
        nullable=False,
        default=UploadStatus.uploading,
        comment="Upload lifecycle status",
    )
    processing_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    thumbnail_file_name: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Remote id of an uploaded thumbnail, or a marker for a derived one",
    )

    # =========
    # ✍️ Admin editable
    # =========
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp"
    )

    def __repr__(self) -> str:
        return (
            f"<VideoUpload id={self.id} "
            f"project={self.project_id} "
            f"status={self.upload_status.value}>"
        )
