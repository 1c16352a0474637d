import hashlib
import hmac
import logging
from typing import Dict, Optional

import httpx

from fest_registry.config import config as app_config

logger = logging.getLogger(__name__)


class PaymentGatewayError(RuntimeError):
    """Raised when the gateway cannot create an order"""


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """HMAC-SHA256 hex digest the gateway returns for a completed checkout"""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class RazorpayClient:
    def __init__(
        self,
        config: dict,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = config.get("razorpay_key_id") or ""
        self.key_secret = config.get("razorpay_key_secret") or ""
        self.api_base = config.get("razorpay_api_base", "https://api.razorpay.com/v1")
        self.timeout = config.get("gateway_timeout_seconds", 10.0)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Create a gateway order for a checkout

        Args:
            amount_minor: Amount in the currency's minor unit (paise for INR)
            currency: ISO currency code
            receipt: Our reference for the order (the payment id)
            notes: Extra key/value pairs stored with the order

        Returns:
            The gateway's order id

        Raises:
            PaymentGatewayError: If the gateway rejects or cannot be reached
        """
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }

        try:
            async with self._client() as client:
                response = await client.post("/orders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Gateway rejected order for {receipt}: "
                f"{e.response.status_code} - {e.response.text}"
            )
            raise PaymentGatewayError(
                f"Order creation failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Gateway unreachable creating order for {receipt}: {e}")
            raise PaymentGatewayError(f"Order creation failed: {e}") from e

        order_id = data.get("id")
        if not order_id:
            logger.error(f"Gateway response for {receipt} has no order id: {data}")
            raise PaymentGatewayError("Order creation returned no order id")

        logger.info(f"Gateway order {order_id} created for {receipt}")
        return order_id

    def verify_payment_signature(
        self, order_id: str, payment_id: str, signature: str
    ) -> bool:
        """Constant-time check of the checkout signature"""
        if not self.key_secret or not signature:
            return False
        expected = compute_signature(order_id, payment_id, self.key_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def get_payment_gateway() -> RazorpayClient:
    """FastAPI dependency for the payment gateway client"""
    return RazorpayClient(app_config)
