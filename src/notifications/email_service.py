from typing import Optional
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage
import logging
import smtplib

from src.config import settings

logger = logging.getLogger(__name__)

BOOKING_TEMPLATE = """Dear {user_name},

Your booking is confirmed.

PNR: {pnr}
Train: {train_details}
Journey: {journey_details}

Your e-ticket and invoice are attached to this e-mail. Please carry a valid
photo ID while travelling.

Happy journey!
"""

CANCELLATION_TEMPLATE = """Dear {user_name},

Your booking with PNR {pnr} has been cancelled.
Reason: {reason}

Any amount charged will be refunded within 7 working days.
"""

_executor: Optional[ThreadPoolExecutor] = None


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=settings.EMAIL_WORKERS, thread_name_prefix="email")
    return _executor


def shutdown_email_workers(wait: bool = True):
    """Stop the background e-mail pool (called on application shutdown)"""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None


class EmailService:
    """SMTP e-mail sender for booking notifications"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user if user is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.SMTP_SENDER
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls

    def build_booking_confirmation(
        self,
        to_email: str,
        user_name: str,
        pnr: str,
        train_details: str,
        journey_details: str,
        ticket_pdf: Optional[bytes] = None,
        invoice_pdf: Optional[bytes] = None
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"Booking Confirmed - PNR: {pnr}"
        msg["From"] = self.sender
        msg["To"] = to_email
        msg.set_content(BOOKING_TEMPLATE.format(
            user_name=user_name,
            pnr=pnr,
            train_details=train_details,
            journey_details=journey_details
        ))

        if ticket_pdf:
            msg.add_attachment(ticket_pdf, maintype="application", subtype="pdf",
                               filename=f"E-Ticket_{pnr}.pdf")
        if invoice_pdf:
            msg.add_attachment(invoice_pdf, maintype="application", subtype="pdf",
                               filename=f"Invoice_{pnr}.pdf")
        return msg

    def send(self, msg: EmailMessage) -> bool:
        """Deliver a message over SMTP; False when delivery fails"""
        try:
            with smtplib.SMTP(self.host, self.port, timeout=settings.SMTP_TIMEOUT_SECONDS) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send e-mail '%s' to %s: %s", msg["Subject"], msg["To"], e)
            return False

        logger.info("Sent e-mail '%s' to %s", msg["Subject"], msg["To"])
        return True

    def send_async(self, msg: EmailMessage) -> Future:
        """Queue a message on the shared e-mail worker pool"""
        return _get_executor().submit(self.send, msg)

    def send_booking_confirmation(
        self,
        to_email: str,
        user_name: str,
        pnr: str,
        train_details: str,
        journey_details: str,
        ticket_pdf: Optional[bytes] = None,
        invoice_pdf: Optional[bytes] = None
    ) -> bool:
        if not to_email or not pnr:
            return False

        msg = self.build_booking_confirmation(
            to_email, user_name, pnr, train_details, journey_details, ticket_pdf, invoice_pdf
        )
        return self.send(msg)

    def send_cancellation(self, to_email: str, user_name: str, pnr: str, reason: str) -> Optional[Future]:
        if not to_email:
            return None

        msg = EmailMessage()
        msg["Subject"] = f"Booking Cancelled - PNR: {pnr}"
        msg["From"] = self.sender
        msg["To"] = to_email
        msg.set_content(CANCELLATION_TEMPLATE.format(user_name=user_name, pnr=pnr, reason=reason))
        return self.send_async(msg)
