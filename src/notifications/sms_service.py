from decimal import Decimal
import logging
import re

from src.config import settings

logger = logging.getLogger(__name__)


def clean_phone_number(phone_number: str) -> str:
    """Strip non-digits and add the India country code where missing"""
    if not phone_number:
        return ""

    digits = re.sub(r"[^0-9]", "", phone_number)
    if len(digits) == 10:
        return "91" + digits
    if len(digits) == 11 and digits.startswith("0"):
        return "91" + digits[1:]
    return digits


class SMSService:
    """SMS sender. No provider is wired up; messages are logged."""

    def __init__(self, sender_id: str = None):
        self.sender_id = sender_id or settings.SMS_SENDER_ID

    def send_sms(self, phone_number: str, message: str) -> bool:
        number = clean_phone_number(phone_number)
        if not number:
            logger.warning("No phone number for SMS: %s", message)
            return False

        logger.info("SMS [%s] to %s: %s", self.sender_id, number, message)
        return True

    def send_booking_confirmation(self, phone_number: str, pnr: str, amount: Decimal) -> bool:
        message = f"Booking Confirmed! PNR: {pnr}. Amount: Rs.{Decimal(amount):.2f}. E-ticket sent to email. Safe journey!"
        return self.send_sms(phone_number, message)

    def send_cancellation(self, phone_number: str, pnr: str) -> bool:
        message = f"Booking cancelled for PNR: {pnr}. Refund will be processed within 7 working days."
        return self.send_sms(phone_number, message)
