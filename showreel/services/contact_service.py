# showreel/services/contact_service.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from showreel.db.enums import SubmissionStatus
from showreel.errors import DependencyError, UnavailableError
from showreel.logger import get_logger
from showreel.models.contact import (
    DEFAULT_CTA_TEXT,
    DEFAULT_DESTINATION_EMAIL,
    ContactSettings,
    ContactSubmission,
)
from showreel.schemas.content import ContactForm, ContactSettingsUpdate
from showreel.services.mail_service import MailService

logger = get_logger(__name__)


class ContactService:

    def __init__(self, db: Session, mail_service: Optional[MailService] = None):
        self.db = db
        self.mail_service = mail_service

    # ======================================================
    # Settings (singleton)
    # ======================================================

    def get_settings(self) -> ContactSettings:
        '''无记录时返回默认值（不落库）'''
        settings = self.db.scalar(select(ContactSettings).order_by(ContactSettings.id.asc()).limit(1))
        if settings is None:
            return ContactSettings(
                cta_text=DEFAULT_CTA_TEXT,
                destination_email=DEFAULT_DESTINATION_EMAIL,
                form_enabled=True,
            )
        return settings

    def save_settings(self, data: ContactSettingsUpdate, *, operator_id: Optional[str] = None) -> ContactSettings:
        settings = self.db.scalar(select(ContactSettings).order_by(ContactSettings.id.asc()).limit(1))
        if settings is None:
            settings = ContactSettings()
            self.db.add(settings)
        settings.cta_text = data.cta_text
        settings.destination_email = str(data.destination_email)
        settings.form_enabled = data.form_enabled
        settings.updated_by = operator_id
        self.db.flush()
        return settings

    # ======================================================
    # Submissions
    # ======================================================

    def submit(self, form: ContactForm) -> ContactSubmission:
        '''
        先记录提交（pending）并提交事务，再发送邮件
        邮件失败不影响记录，但以 DependencyError 告知调用方
        '''
        settings = self.get_settings()
        if not settings.form_enabled:
            raise UnavailableError("The contact form is currently disabled")

        submission = ContactSubmission(
            name=form.name,
            email=str(form.email),
            message=form.message,
            status=SubmissionStatus.pending,
        )
        self.db.add(submission)
        self.db.commit()
        logger.info(f"Contact submission {submission.id} recorded from {submission.email}")

        sent = self.mail_service is not None and self.mail_service.send_contact_notification(
            destination=settings.destination_email,
            name=form.name,
            email=str(form.email),
            message=form.message,
        )

        submission.status = SubmissionStatus.sent if sent else SubmissionStatus.failed
        submission.processed_at = datetime.now(timezone.utc)
        self.db.commit()

        if not sent:
            logger.error(f"Contact submission {submission.id} saved but email delivery failed")
            raise DependencyError(
                "Your message was saved but the notification email could not be delivered",
                details={"submissionId": submission.id},
            )
        return submission
