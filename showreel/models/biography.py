# showreel/models/biography.py
from typing import List, Optional
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from showreel.db.base import Base


class Biography(Base):
    """
    Singleton row backing the about page.
    List fields are replaced wholesale on every save.
    """

    __tablename__ = "biography"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    hero_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Short biography paragraph")

    locations: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    courses: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True, comment="Courses & workshops")
    clients: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    member_of: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    skills: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    profile_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
