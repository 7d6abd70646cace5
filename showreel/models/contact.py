# showreel/models/contact.py
from typing import Optional
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from showreel.db.base import Base
from showreel.db.enums import SubmissionStatus

DEFAULT_CTA_TEXT = "Let's Chat."
DEFAULT_DESTINATION_EMAIL = "hello@example.com"


class ContactSettings(Base):
    """Singleton row: contact page call-to-action and mail routing."""

    __tablename__ = "contact_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cta_text: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_CTA_TEXT)
    destination_email: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_DESTINATION_EMAIL)
    form_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("1"),
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ContactSubmission(Base):
    """Append-only log of contact form messages."""

    __tablename__ = "contact_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    '''
    status:
        pending -> sent
        pending -> failed
    '''
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus, name="submission_status"),
        nullable=False,
        default=SubmissionStatus.pending,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ContactSubmission id={self.id} status={self.status.value}>"
