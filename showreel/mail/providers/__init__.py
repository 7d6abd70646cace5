# showreel/mail/providers/__init__.py
from showreel.mail.providers.sendgrid_provider import SendGridProvider

__all__ = ['SendGridProvider']
