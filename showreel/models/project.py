# showreel/models/project.py
from showreel.db.base import Base
from showreel.db.enums import ProjectStatus
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column


class Project(Base):
    """
    A portfolio video entry.

    Invariants:
    - status == published  =>  video_url is not null (enforced by CHECK)
    - presentation order is (sort_key ASC, id ASC); the public
      ``displayOrder`` is the 0-based rank in that order
    - every UPDATE bumps ``version`` (compare-and-swap on write)
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "status <> 'published' OR video_url IS NOT NULL",
            name="ck_projects_published_has_video",
        ),
        Index("ix_projects_order", "sort_key", "id"),
    )

    # =========
    # 🔒 Immutable facts
    # =========
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Project ID")
    created_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="User ID of the creator")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp")

    # =========
    # ✍️ Admin editable
    # =========
    title: Mapped[str] = mapped_column(Text, nullable=False, comment="Project title")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Category slug or name, free text (not a foreign key)")
    client: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agency: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Project role, e.g. 'Editing, Motion, Color'")
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Comma-separated tags")
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Video duration in seconds")
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # =========
    # 🔁 System maintained fields
    # =========
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        nullable=False,
        default=ProjectStatus.draft,
        comment="Lifecycle status controlling public visibility",
    )

    sort_key: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Sparse ordering key, ascending",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic concurrency token",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def tag_list(self) -> List[str]:
        if not self.tags:
            return []
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    @property
    def is_published(self) -> bool:
        return self.status == ProjectStatus.published

    # =========
    # Optional: representation
    # =========
    def __repr__(self) -> str:
        return (
            f"<Project id={self.id} title={self.title!r} "
            f"status={self.status.value if self.status else None} sort_key={self.sort_key}>"
        )
