# showreel/models/user.py
from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    Enum,
    func,
)
from showreel.db.base import Base
from showreel.db.enums import UserRole
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional


class User(Base):
    """
    Admin panel operator.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="User UUID")

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Login email, immutable",
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Display name for the user",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Hashed password for authentication",
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.user,
        comment="Authorization role carried in issued tokens",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="Whether the user account is active")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Account creation timestamp",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role.value}>"
