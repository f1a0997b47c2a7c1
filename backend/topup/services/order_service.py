"""
Payment Order Service — creates top-up orders with the gateway.
"""
import logging
import time
from typing import Callable, Optional

from topup.errors import OrderCreationError
from topup.models.payment import OrderRequest, PaymentOrder
from topup.services.gateway import PaymentGateway
from topup.utils.money import PaiseAmount

logger = logging.getLogger(__name__)

ORDER_PURPOSE = "Account Top-up"


def make_receipt(user_id: str, now_ms: Optional[int] = None) -> str:
    """Build the per-attempt reference ``topup_<userId>_<epochMillis>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"topup_{user_id}_{now_ms}"


class PaymentOrderService:
    """Turns a validated ``OrderRequest`` into a gateway ``PaymentOrder``.

    Failures are surfaced as ``OrderCreationError`` and never retried; the
    user re-initiates the top-up.
    """

    def __init__(self, gateway: PaymentGateway, platform: str = "TradeMind AI",
                 clock: Callable[[], float] = time.time):
        self.gateway = gateway
        self.platform = platform
        self._clock = clock

    def new_receipt(self, user_id: str) -> str:
        return make_receipt(user_id, int(self._clock() * 1000))

    def create_order(self, request: OrderRequest) -> PaymentOrder:
        payload = {
            "amount": request.amount.value,
            "currency": request.currency,
            "receipt": request.receipt,
            "payment_capture": True,
            "notes": {
                "userId": request.user_id,
                "purpose": ORDER_PURPOSE,
                "platform": self.platform,
            },
        }

        try:
            entity = self.gateway.create_order(payload)
        except OrderCreationError:
            raise
        except Exception as exc:
            logger.exception("Unexpected gateway error for receipt %s", request.receipt)
            raise OrderCreationError(details=str(exc)) from exc

        try:
            order = PaymentOrder(
                id=str(entity["id"]),
                amount=PaiseAmount(int(entity.get("amount", request.amount.value))),
                currency=entity.get("currency", request.currency),
                receipt=entity.get("receipt") or request.receipt,
                status=entity.get("status", "created"),
                created_at=int(entity.get("created_at") or self._clock()),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise OrderCreationError(details=f"Malformed gateway response: {exc}") from exc

        logger.info("Order created: %s amount=%s receipt=%s", order.id, order.amount, order.receipt)
        return order
