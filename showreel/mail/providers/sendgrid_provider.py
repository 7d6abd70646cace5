# showreel/mail/providers/sendgrid_provider.py
"""
SendGrid email provider.
"""
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, ReplyTo

from showreel.logger import get_logger

logger = get_logger(__name__)


class SendGridProvider:
    """Delivers mail through the SendGrid v3 API."""

    def __init__(self, api_key: str, from_email: str):
        """
        Initialize SendGrid provider.

        Args:
            api_key: SendGrid API key
            from_email: Verified sender address
        """
        self.client = SendGridAPIClient(api_key)
        self.from_email = from_email

        logger.info(f"SendGridProvider initialized: from={from_email}")

    def send_email(
            self,
            to: str,
            subject: str,
            html_body: str,
            text_body: Optional[str] = None,
            reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send email via SendGrid.

        Args:
            to: Recipient email
            subject: Email subject
            html_body: HTML body
            text_body: Plain text body (optional)
            reply_to: Reply-To address (optional)

        Returns:
            True if SendGrid accepted the message
        """
        message = Mail(
            from_email=self.from_email,
            to_emails=to,
            subject=subject,
            html_content=html_body,
            plain_text_content=text_body,
        )
        if reply_to:
            message.reply_to = ReplyTo(reply_to)

        try:
            logger.info(f"Sending email via SendGrid to {to}")
            response = self.client.send(message)
        except (HTTPError, OSError) as e:
            logger.error(f"SendGrid delivery to {to} failed: {e}")
            return False

        if 200 <= response.status_code < 300:
            logger.info(f"✓ Email sent via SendGrid to {to} (status {response.status_code})")
            return True

        logger.error(f"SendGrid rejected email to {to}: status {response.status_code}")
        return False
