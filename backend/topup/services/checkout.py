"""
Checkout Coordinator — hands a gateway order to the checkout widget and
waits for exactly one of: success, user dismissal, or payment failure.

The widget itself is a black box reached through ``CheckoutSurface``. It
reports back through the ``handler`` option (success), ``modal.ondismiss``
(cancel) and the ``payment.failed`` event (failure), mirroring Razorpay
Checkout. Callbacks may arrive on any thread; the first one wins.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from topup.config import Settings
from topup.errors import PAYMENT_CANCELLED, PAYMENT_FAILED
from topup.models.payment import PaymentOrder

logger = logging.getLogger(__name__)


# ─── Outcomes ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CheckoutSuccess:
    order_id: Optional[str]
    payment_id: Optional[str]
    signature: Optional[str]


@dataclass(frozen=True)
class CheckoutCancelled:
    description: str = "Payment cancelled by user"
    code: str = PAYMENT_CANCELLED


@dataclass(frozen=True)
class CheckoutFailed:
    description: str
    code: str = PAYMENT_FAILED
    gateway_code: Optional[str] = None


CheckoutOutcome = Union[CheckoutSuccess, CheckoutCancelled, CheckoutFailed]


# ─── Options ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UserDetails:
    """Prefill only; never validated."""
    name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class CheckoutConfig:
    key_id: str
    merchant_name: str = "TradeMind AI"
    description: str = "Account Top-up"
    address: str = "TradeMind AI Corporate Office"
    theme_color: str = "#3B82F6"
    timeout_seconds: int = 300
    retry_max: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "CheckoutConfig":
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            merchant_name=settings.MERCHANT_NAME,
            description=settings.MERCHANT_DESCRIPTION,
            address=settings.MERCHANT_ADDRESS,
            theme_color=settings.THEME_COLOR,
            timeout_seconds=settings.CHECKOUT_TIMEOUT_SECONDS,
            retry_max=settings.CHECKOUT_RETRY_MAX,
        )


def build_checkout_options(order: PaymentOrder, user: UserDetails, config: CheckoutConfig) -> Dict[str, Any]:
    """JSON-safe widget options for ``order``; callbacks are attached separately."""
    return {
        "key": config.key_id,
        "amount": order.amount.value,
        "currency": order.currency,
        "name": config.merchant_name,
        "description": config.description,
        "order_id": order.id,
        "prefill": {
            "name": user.name or "",
            "email": user.email or "",
            "contact": user.phone or "",
        },
        "notes": {
            "address": config.address,
            "merchant_order_id": order.receipt,
        },
        "theme": {"color": config.theme_color},
        "modal": {},
        "retry": {"enabled": True, "max_count": config.retry_max},
        "timeout": config.timeout_seconds,
        "remember_customer": False,
    }


# ─── Surface ─────────────────────────────────────────────────────────

class CheckoutSurface:
    """One checkout widget instance, built from an options dict."""

    def __init__(self, options: Dict[str, Any]):
        self.options = options

    def on(self, event: str, callback: Callable[[Dict[str, Any]], None]) -> None:
        raise NotImplementedError

    def open(self) -> None:
        raise NotImplementedError


SurfaceFactory = Callable[[Dict[str, Any]], CheckoutSurface]


def _failure_from_event(response: Dict[str, Any]) -> CheckoutFailed:
    error = (response or {}).get("error") or {}
    return CheckoutFailed(
        description=error.get("description") or "Payment failed",
        gateway_code=error.get("code"),
    )


def _success_from_handler(response: Dict[str, Any]) -> CheckoutSuccess:
    response = response or {}
    return CheckoutSuccess(
        order_id=response.get("razorpay_order_id"),
        payment_id=response.get("razorpay_payment_id"),
        signature=response.get("razorpay_signature"),
    )


class CheckoutCoordinator:
    """Suspends until the checkout widget resolves; no polling."""

    def __init__(self, surface_factory: SurfaceFactory, config: CheckoutConfig):
        self.surface_factory = surface_factory
        self.config = config

    async def run(self, order: PaymentOrder, user: UserDetails) -> CheckoutOutcome:
        """Open checkout for ``order`` and return its single outcome.

        ``timeout_seconds`` bounds the whole session from open, the same
        window the widget's own ``timeout`` option enforces. The widget reports
        no intermediate activity, so there is nothing to re-arm the timer on; a
        session that runs out is reported as cancelled.
        """
        loop = asyncio.get_running_loop()
        settled: asyncio.Future = loop.create_future()

        def settle(outcome: CheckoutOutcome) -> None:
            def _set():
                if not settled.done():
                    settled.set_result(outcome)
            loop.call_soon_threadsafe(_set)

        options = build_checkout_options(order, user, self.config)
        options["handler"] = lambda response: settle(_success_from_handler(response))
        options["modal"]["ondismiss"] = lambda: settle(CheckoutCancelled())

        try:
            surface = self.surface_factory(options)
            surface.on("payment.failed", lambda response: settle(_failure_from_event(response)))
            surface.open()
        except Exception as exc:
            logger.exception("Checkout could not be opened for order %s", order.id)
            return CheckoutFailed(description=f"Checkout unavailable: {exc}")

        logger.info("Checkout opened for order %s (%s)", order.id, order.amount)
        try:
            outcome = await asyncio.wait_for(settled, timeout=self.config.timeout_seconds)
        except asyncio.TimeoutError:
            logger.info("Checkout for order %s abandoned after %ss", order.id, self.config.timeout_seconds)
            return CheckoutCancelled(description="Checkout session timed out")

        logger.info("Checkout for order %s resolved: %s", order.id, type(outcome).__name__)
        return outcome
