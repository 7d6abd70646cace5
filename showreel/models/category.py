# showreel/models/category.py
from sqlalchemy import DateTime, Integer, String, func
from showreel.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class Category(Base):
    """
    Admin-managed taxonomy entry.
    Project.category references it by convention only, never by foreign key.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, comment="Display name")
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, comment="URL slug")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} slug={self.slug}>"
