# showreel/services/mail_service.py
"""
Email service for contact-form notifications.
"""
from html import escape
from typing import Optional

from showreel.logger import get_logger
from showreel.mail.providers import SendGridProvider

logger = get_logger(__name__)


class MailService:
    """
    Builds and sends the notification for a contact-form submission.

    Usage:
        mail_service = MailService(SendGridProvider(api_key, sender))
        sent = mail_service.send_contact_notification(
            destination='owner@example.com',
            name='Ana',
            email='ana@example.com',
            message='Hello...',
        )
    """

    def __init__(self, provider: Optional[SendGridProvider] = None):
        self.provider = provider
        if provider is None:
            logger.warning("MailService has no provider configured; contact emails will fail")

    @classmethod
    def from_config(cls, api_key: Optional[str], sender: Optional[str]) -> "MailService":
        if api_key and sender:
            return cls(SendGridProvider(api_key=api_key, from_email=sender))
        return cls(None)

    def send_contact_notification(
            self,
            *,
            destination: str,
            name: Optional[str],
            email: str,
            message: str,
    ) -> bool:
        """
        Returns:
            True if the provider accepted the message
        """
        if self.provider is None:
            logger.error("Contact notification not sent: no mail provider configured")
            return False

        sender_label = name or email
        subject = f"New contact form submission from {sender_label}"
        text_body = f"Name: {name or '-'}\nEmail: {email}\n\n{message}"
        html_body = (
            "<h2>New contact form submission</h2>"
            f"<p><strong>Name:</strong> {escape(name or '-')}</p>"
            f"<p><strong>Email:</strong> {escape(email)}</p>"
            f"<p>{escape(message).replace(chr(10), '<br>')}</p>"
        )
        return self.provider.send_email(
            to=destination,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            reply_to=email,
        )
