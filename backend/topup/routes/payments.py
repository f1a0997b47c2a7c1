"""
Payment Routes — Razorpay top-up order lifecycle.
Handles: order creation, checkout options, signature verification,
client-reported checkout outcomes, and transaction history.
"""
import logging
from datetime import timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topup.config import Settings
from topup.database import get_db
from topup.dependencies import client_ip, get_app_settings, get_topup_service
from topup.errors import (
    LedgerError, TopUpValidationError, MISSING_FIELDS, MISSING_PAYMENT_DETAILS,
    TRANSACTION_NOT_FOUND, TRANSACTION_RESOLVED,
)
from topup.models.payment import PaymentOrder
from topup.schemas.schemas import (
    CheckoutResultRequest, CreateOrderRequest, ErrorResponse, PaymentOrderResponse,
    TransactionResponse, VerifyErrorResponse, VerifyPaymentRequest, VerifyPaymentResponse,
)
from topup.services import audit_service
from topup.services.audit_service import AuditService
from topup.services.checkout import (
    CheckoutCancelled, CheckoutConfig, CheckoutFailed, UserDetails, build_checkout_options,
)
from topup.services.topup_service import TopUpService
from topup.utils.money import rupees_to_paise
from topup.utils.rate_limiter import rate_limit
from topup.utils.validators import validate_order_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def _audit(db: Session, request: Request, order_id: str, action: str,
           payload: dict, metadata: Optional[dict] = None) -> None:
    """Append to the order's audit chain.

    The gateway order and ledger entry already exist by the time this runs, so
    a failed audit write is logged and rolled back rather than reported as a
    failed request.
    """
    try:
        AuditService.log(db, order_id, action, payload=payload,
                         ip_address=client_ip(request), metadata=metadata)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Audit write %s failed for order %s", action, order_id)


@router.post(
    "/create-order",
    response_model=PaymentOrderResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_order(
    payload: CreateOrderRequest,
    request: Request,
    service: TopUpService = Depends(get_topup_service),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit("create_order_limiter")),
):
    """Create a Razorpay order for a top-up (amount in paise) and record it PENDING."""
    order_request = validate_order_request(
        payload.amount, payload.currency, payload.receipt, payload.user_id, payload.method,
        min_rupees=settings.MIN_TOPUP_RUPEES, max_rupees=settings.MAX_TOPUP_RUPEES,
    )
    order, txn = service.create_order(order_request)

    _audit(
        db, request, order.id, audit_service.ORDER_CREATED,
        payload={"amount": order.amount.value, "currency": order.currency, "receipt": order.receipt},
        metadata={"user_id": order_request.user_id, "transaction_id": txn.id, "method": txn.method},
    )

    return PaymentOrderResponse(**order.to_dict())


@router.get("/checkout-options/{order_id}", responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
def get_checkout_options(
    order_id: str,
    name: str = "",
    email: str = "",
    contact: str = "",
    service: TopUpService = Depends(get_topup_service),
    settings: Settings = Depends(get_app_settings),
):
    """Options the browser passes to Razorpay Checkout for a pending order."""
    txn = service.ledger.get(order_id)
    if txn is None:
        raise LedgerError(TRANSACTION_NOT_FOUND, "Transaction not found", status_code=404)
    if txn.status.is_terminal:
        raise LedgerError(TRANSACTION_RESOLVED, f"Transaction already {txn.status.value}")

    order = PaymentOrder(
        id=txn.order_id,
        amount=rupees_to_paise(txn.amount),
        currency=txn.currency,
        receipt=txn.receipt,
        status="created",
        created_at=int(txn.timestamp.replace(tzinfo=timezone.utc).timestamp()),
    )
    options = build_checkout_options(order, UserDetails(name, email, contact), CheckoutConfig.from_settings(settings))
    options.pop("modal")  # browser attaches ondismiss itself
    return options


@router.post(
    "/verify",
    response_model=VerifyPaymentResponse,
    responses={400: {"model": VerifyErrorResponse}, 500: {"model": VerifyErrorResponse}},
)
def verify_payment(
    payload: VerifyPaymentRequest,
    request: Request,
    service: TopUpService = Depends(get_topup_service),
    db: Session = Depends(get_db),
):
    """Verify the Razorpay signature for a completed checkout."""
    try:
        result, txn = service.verify_payment(
            payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature,
        )
        if txn is not None:
            _audit(
                db, request, txn.order_id,
                audit_service.PAYMENT_VERIFIED if result.verified else audit_service.PAYMENT_VERIFICATION_FAILED,
                payload={"payment_id": payload.razorpay_payment_id, "verified": result.verified},
                metadata={"reason": result.reason, "status": txn.status.value},
            )
    except Exception as exc:
        logger.exception("Error verifying payment for order %s", payload.razorpay_order_id)
        return JSONResponse(
            status_code=500,
            content={"verified": False, "error": "Payment verification failed", "details": str(exc)},
        )

    if result.reason == MISSING_PAYMENT_DETAILS:
        return JSONResponse(status_code=400, content={"verified": False, "error": "Missing payment details"})
    if not result.verified:
        return JSONResponse(status_code=400, content={"verified": False, "error": "Invalid payment signature"})

    return VerifyPaymentResponse(
        verified=True,
        message="Payment verified successfully",
        payment_id=result.payment_id,
        order_id=result.order_id,
    )


@router.post(
    "/checkout-result",
    response_model=TransactionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def record_checkout_result(
    payload: CheckoutResultRequest,
    request: Request,
    service: TopUpService = Depends(get_topup_service),
    db: Session = Depends(get_db),
):
    """Record a dismissed or failed checkout; the transaction becomes FAILED."""
    outcome_name = (payload.outcome or "").strip().lower()
    if not payload.razorpay_order_id or outcome_name not in ("cancelled", "failed"):
        raise TopUpValidationError(
            MISSING_FIELDS, "razorpay_order_id and outcome (cancelled | failed) are required",
        )

    if outcome_name == "cancelled":
        outcome = CheckoutCancelled(description=payload.description or CheckoutCancelled.description)
        action = audit_service.CHECKOUT_CANCELLED
    else:
        outcome = CheckoutFailed(description=payload.description or "Payment failed")
        action = audit_service.CHECKOUT_FAILED

    txn = service.record_checkout_outcome(payload.razorpay_order_id, outcome)
    if txn is None:
        raise LedgerError(TRANSACTION_NOT_FOUND, "Transaction not found", status_code=404)

    _audit(
        db, request, txn.order_id, action,
        payload={"description": outcome.description},
        metadata={"status": txn.status.value},
    )
    return TransactionResponse.from_transaction(txn)


@router.get(
    "/transactions",
    response_model=list[TransactionResponse],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def list_transactions(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: TopUpService = Depends(get_topup_service),
):
    """A user's top-up transactions, newest first."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID required"})

    try:
        transactions = service.ledger.list(user_id)
    except Exception as exc:
        logger.exception("Error fetching transactions for %s", user_id)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch transactions", "details": str(exc)})

    return [TransactionResponse.from_transaction(t) for t in transactions]
