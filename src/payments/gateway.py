from typing import Optional, Union
from decimal import Decimal, ROUND_HALF_UP
import hashlib
import hmac
import logging
import time
import requests

from src.config import settings
from src.exceptions import InvalidRequestError, PaymentGatewayError

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """Client for the Razorpay Orders API and payment signature checks

    Without configured credentials the gateway runs in mock mode: orders get
    local ``order_<millis>`` ids and signatures are checked against an empty
    secret, which is enough for development against a test database.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None
    ):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    @property
    def mock_mode(self) -> bool:
        return not (self.key_id and self.key_secret)

    @staticmethod
    def to_paise(amount: Union[Decimal, float, int, str]) -> int:
        """Rupees rounded to 2 decimal places, then converted to paise"""
        rupees = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return int(rupees * 100)

    def create_order(self, amount: Union[Decimal, float], currency: Optional[str] = None, receipt: str = "") -> str:
        """Create a payment order and return its id"""
        paise = self.to_paise(amount)
        if paise <= 0:
            raise InvalidRequestError("Order amount must be positive")

        currency = currency or settings.CURRENCY

        if self.mock_mode:
            order_id = f"order_{int(time.time() * 1000)}"
            logger.warning("Razorpay credentials not configured, using mock order %s", order_id)
            return order_id

        payload = {
            "amount": paise,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1
        }

        try:
            response = self.session.post(
                f"{self.api_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error("Razorpay order creation failed for receipt %s: %s", receipt, e)
            raise PaymentGatewayError(f"Payment order could not be created: {e}")
        except ValueError as e:
            logger.error("Invalid response from Razorpay for receipt %s: %s", receipt, e)
            raise PaymentGatewayError("Payment gateway returned an invalid response")

        order_id = data.get("id")
        if not order_id:
            raise PaymentGatewayError("Payment gateway response did not include an order id")

        logger.info("Created Razorpay order %s for %s paise (receipt %s)", order_id, paise, receipt)
        return order_id

    def generate_signature(self, order_id: str, payment_id: str) -> str:
        payload = f"{order_id}|{payment_id}"
        return hmac.new(
            self.key_secret.encode(),
            payload.encode(),
            hashlib.sha256
        ).hexdigest()

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout signature for an order/payment pair"""
        if not order_id or not payment_id or not signature:
            return False

        expected = self.generate_signature(order_id, payment_id)
        is_valid = hmac.compare_digest(expected.encode(), signature.encode())

        if not is_valid:
            logger.warning("Signature mismatch for order %s, payment %s", order_id, payment_id)
        return is_valid
