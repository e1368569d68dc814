"""
Notifications Module

Booking confirmation and cancellation messages.

Key Components:
- email_service.py: SMTP e-mail with ticket/invoice PDF attachments and a
  bounded worker pool for background delivery
- sms_service.py: SMS messages (logged, no provider wired up)
"""

from .email_service import EmailService, shutdown_email_workers
from .sms_service import SMSService, clean_phone_number

__all__ = [
    "EmailService",
    "SMSService",
    "clean_phone_number",
    "shutdown_email_workers"
]
