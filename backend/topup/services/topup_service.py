"""
Top-up Service — ties order creation, checkout, verification and the ledger
together.

Ordering per attempt: order creation, then checkout, then signature
verification, then the ledger transition. Only a verified signature marks a
transaction SUCCESS.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from topup.errors import (
    MISSING_PAYMENT_DETAILS, VERIFICATION_ERROR,
)
from topup.models.payment import OrderRequest, PaymentOrder, Transaction, TransactionStatus
from topup.services.checkout import (
    CheckoutCancelled, CheckoutCoordinator, CheckoutFailed, CheckoutSuccess, UserDetails,
)
from topup.services.ledger import TransactionLedger
from topup.services.notification_service import Notification, NotificationService
from topup.services.order_service import PaymentOrderService
from topup.services.signature import SignatureVerifier, VerificationResult
from topup.utils.money import paise_to_rupees, rupees_to_paise
from topup.utils.validators import DEFAULT_MAX_RUPEES, DEFAULT_MIN_RUPEES, validate_topup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopUpOutcome:
    status: TransactionStatus
    order: PaymentOrder
    transaction: Optional[Transaction]
    notification: Notification
    reason: Optional[str] = None


class TopUpService:
    def __init__(
        self,
        order_service: PaymentOrderService,
        ledger: TransactionLedger,
        verifier: SignatureVerifier,
        min_rupees: int = DEFAULT_MIN_RUPEES,
        max_rupees: int = DEFAULT_MAX_RUPEES,
    ):
        self.order_service = order_service
        self.ledger = ledger
        self.verifier = verifier
        self.min_rupees = min_rupees
        self.max_rupees = max_rupees

    # ─── Server-side steps ───────────────────────────────────────────

    def create_order(self, request: OrderRequest) -> Tuple[PaymentOrder, Transaction]:
        """Create the gateway order, then record its PENDING transaction."""
        order = self.order_service.create_order(request)
        txn = self.ledger.record(
            order_id=order.id,
            amount=paise_to_rupees(request.amount),
            currency=order.currency,
            method=request.method,
            user_id=request.user_id,
            receipt=order.receipt,
        )
        return order, txn

    def verify_payment(self, order_id: Optional[str], payment_id: Optional[str],
                       signature: Optional[str]) -> Tuple[VerificationResult, Optional[Transaction]]:
        """Check the gateway signature and settle the order's transaction.

        Missing details or a mismatch fail the transaction even if the
        checkout widget reported success.
        """
        result = self.verifier.verify(order_id, payment_id, signature)
        if not order_id:
            return result, None
        if result.verified:
            txn = self.ledger.mark_resolved(order_id, TransactionStatus.SUCCESS, payment_id=payment_id)
        else:
            txn = self.ledger.mark_resolved(
                order_id, TransactionStatus.FAILED, payment_id=payment_id, reason=result.reason,
            )
        return result, txn

    def record_checkout_outcome(self, order_id: str,
                                outcome: Any) -> Optional[Transaction]:
        """Fail the order's transaction after a cancelled or failed checkout."""
        if not isinstance(outcome, (CheckoutCancelled, CheckoutFailed)):
            raise TypeError("Only cancelled or failed checkouts are recorded here")
        return self.ledger.mark_resolved(order_id, TransactionStatus.FAILED, reason=outcome.code)

    # ─── Full attempt ────────────────────────────────────────────────

    async def top_up(
        self,
        amount: Any,
        currency: Optional[str],
        user_id: Optional[str],
        method: Optional[str],
        user: UserDetails,
        coordinator: CheckoutCoordinator,
    ) -> TopUpOutcome:
        """Run one top-up attempt end to end.

        Raises:
            TopUpValidationError: before any gateway call.
            OrderCreationError: the gateway refused the order; nothing recorded.
        """
        request = validate_topup(amount, currency, user_id, method, self.min_rupees, self.max_rupees)
        order_request = OrderRequest(
            amount=rupees_to_paise(request.amount),
            currency=request.currency,
            receipt=self.order_service.new_receipt(request.user_id),
            user_id=request.user_id,
            method=request.method,
        )
        order, _ = await run_in_threadpool(self.create_order, order_request)

        resolved: Optional[Transaction] = None
        reason: Optional[str] = None
        try:
            outcome = await coordinator.run(order, user)
            if isinstance(outcome, CheckoutSuccess):
                result, resolved = await run_in_threadpool(
                    self.verify_payment, outcome.order_id, outcome.payment_id, outcome.signature,
                )
                reason = result.reason
            else:
                resolved = await run_in_threadpool(self.record_checkout_outcome, order.id, outcome)
                reason = outcome.code
        except Exception:
            logger.exception("Top-up for order %s failed before verification completed", order.id)
            reason = VERIFICATION_ERROR
        finally:
            if resolved is None or resolved.order_id != order.id:
                # Unverified means failed; never leave the attempt PENDING.
                resolved = await run_in_threadpool(
                    self.ledger.mark_resolved, order.id, TransactionStatus.FAILED,
                    reason=reason or MISSING_PAYMENT_DETAILS,
                )

        status = resolved.status if resolved else TransactionStatus.FAILED
        if status is TransactionStatus.SUCCESS:
            reason = None
        elif resolved is not None and resolved.failure_reason:
            reason = resolved.failure_reason
        notification = NotificationService.for_outcome(status, reason, request.amount)
        return TopUpOutcome(status=status, order=order, transaction=resolved, notification=notification, reason=reason)
