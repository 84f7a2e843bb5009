# Paystack Checkout Service for Order Payments
# Hosted checkout sessions, verification and webhook signatures
import hashlib
import hmac
import logging
import os
from decimal import Decimal
from typing import Optional, Dict, Any

import requests

from config.app_config import DEFAULT_CURRENCY
from core.exceptions import GatewayError

logger = logging.getLogger(__name__)


class PaystackConfig:
    """Paystack configuration"""
    BASE_URL = "https://api.paystack.co"
    SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
    PUBLIC_KEY = os.getenv("PAYSTACK_PUBLIC_KEY", "")
    CURRENCY = DEFAULT_CURRENCY
    TIMEOUT = 30  # seconds


class PaystackService:
    """Service for creating and verifying Paystack checkout sessions"""

    def __init__(self):
        self.base_url = PaystackConfig.BASE_URL
        self.secret_key = PaystackConfig.SECRET_KEY
        self.headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json"
        }

    def _make_request(self, method: str, endpoint: str, data: Optional[Dict] = None) -> Dict[str, Any]:
        """Make a request to Paystack API"""
        url = f"{self.base_url}{endpoint}"
        try:
            if method == "GET":
                response = requests.get(url, headers=self.headers, timeout=PaystackConfig.TIMEOUT)
            elif method == "POST":
                response = requests.post(url, headers=self.headers, json=data, timeout=PaystackConfig.TIMEOUT)
            else:
                raise ValueError(f"Unsupported method: {method}")

            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Paystack API error: {e}")
            raise GatewayError("Payment service error")

    def initialize_transaction(
        self,
        email: str,
        amount: int,
        callback_url: str,
        reference: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> Dict[str, Any]:
        """
        Initialize a Paystack transaction

        Args:
            email: Customer's email
            amount: Amount in the currency's minor unit (paise)
            callback_url: URL to redirect after payment
            reference: Our own unique reference (Paystack generates one if omitted)
            metadata: Additional transaction metadata, e.g. order_id

        Returns:
            Transaction initialization response with authorization_url and reference
        """
        data = {
            "email": email,
            "amount": amount,
            "currency": PaystackConfig.CURRENCY,
            "callback_url": callback_url,
            "metadata": metadata or {}
        }
        if reference:
            data["reference"] = reference

        return self._make_request("POST", "/transaction/initialize", data)

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """
        Verify a Paystack transaction

        Args:
            reference: Transaction reference

        Returns:
            Transaction verification response
        """
        return self._make_request("GET", f"/transaction/verify/{reference}")

    @staticmethod
    def to_minor_units(amount) -> int:
        """Convert a major-unit amount (rupees) to paise."""
        return int((Decimal(str(amount)) * 100).to_integral_value())

    @staticmethod
    def format_amount(amount_in_minor: int) -> str:
        """Format paise as a display string like "INR 2,999.00"."""
        return f"{PaystackConfig.CURRENCY} {amount_in_minor / 100:,.2f}"


class PaystackWebhookHandler:
    """Handle Paystack webhook events"""

    SUPPORTED_EVENTS = [
        "charge.success",
    ]

    @staticmethod
    def verify_webhook(payload: bytes, signature: Optional[str], secret_key: str) -> bool:
        """
        Verify webhook signature

        Args:
            payload: Raw request body
            signature: X-Paystack-Signature header value
            secret_key: Paystack secret key

        Returns:
            True if signature is valid
        """
        if not signature or not secret_key:
            return False

        computed_signature = hmac.new(
            secret_key.encode('utf-8'),
            payload,
            hashlib.sha512
        ).hexdigest()

        return hmac.compare_digest(computed_signature, signature)

    @staticmethod
    def handle_charge_success(data: Dict[str, Any]) -> Dict[str, Any]:
        """Handle successful charge webhook"""
        return {
            "event": "charge.success",
            "reference": data.get("reference"),
            "amount": data.get("amount"),
            "customer_email": (data.get("customer") or {}).get("email"),
            "metadata": data.get("metadata") or {},
            "paid_at": data.get("paid_at"),
            "channel": data.get("channel"),
        }
