"""
Payment Gateway Client — thin seam over the Razorpay SDK.

Routes and services depend on ``PaymentGateway`` so tests can substitute a
fake; ``RazorpayGateway`` is the production implementation.
"""
import logging

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError
import requests

from topup.errors import OrderCreationError

logger = logging.getLogger(__name__)


class PaymentGateway:
    """Interface for the gateway's order-creation API."""

    def create_order(self, payload: dict) -> dict:
        """Create an order and return the gateway's order entity.

        Raises:
            OrderCreationError: gateway unreachable or request rejected.
        """
        raise NotImplementedError


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders API via the official ``razorpay`` client."""

    def __init__(self, key_id: str, key_secret: str):
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = None

    def _ensure_client(self):
        """Return an initialised Razorpay client or raise OrderCreationError."""
        if not (self.key_id and self._key_secret):
            raise OrderCreationError(
                "Razorpay credentials not configured",
                details="Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.",
            )
        if self._client is None:
            logger.info("Initialising Razorpay client for key %s", self.key_id)
            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def create_order(self, payload: dict) -> dict:
        client = self._ensure_client()
        try:
            order = client.order.create(data=payload)
        except (BadRequestError, GatewayError, ServerError) as exc:
            logger.error("Razorpay rejected order %s: %s", payload.get("receipt"), exc)
            raise OrderCreationError(details=str(exc)) from exc
        except requests.RequestException as exc:
            logger.error("Razorpay unreachable for order %s: %s", payload.get("receipt"), exc)
            raise OrderCreationError(details=str(exc)) from exc

        logger.info("Razorpay order created: %s (%s)", order.get("id"), payload.get("receipt"))
        return order
