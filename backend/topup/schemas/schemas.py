"""
Pydantic Schemas — Request & Response models for API validation.

Request fields are optional on purpose: missing fields are reported by the
top-up validators with a machine-checkable reason instead of a bare 422.
"""
from datetime import datetime
from typing import Optional, Dict
from pydantic import BaseModel, Field

from topup.models.payment import Transaction


# ──────────────── Orders ────────────────

class CreateOrderRequest(BaseModel):
    amount: Optional[float] = Field(None, description="Amount in paise (₹1 = 100)")
    currency: Optional[str] = Field(None, description="ISO 4217 code, INR")
    receipt: Optional[str] = Field(None, description="Client reference, topup_<userId>_<epochMillis>")
    user_id: Optional[str] = Field(None, alias="userId")
    method: Optional[str] = Field(None, description="UPI | NETBANKING | CARD | WALLET")

    class Config:
        populate_by_name = True


class PaymentOrderResponse(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: str
    status: str
    created_at: int


# ──────────────── Verification ────────────────

class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class VerifyPaymentResponse(BaseModel):
    verified: bool
    message: str
    payment_id: str
    order_id: str


# ──────────────── Checkout ────────────────

class CheckoutResultRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    outcome: Optional[str] = Field(None, description="cancelled | failed")
    description: Optional[str] = None


# ──────────────── Transactions ────────────────

class TransactionResponse(BaseModel):
    id: str
    order_id: str = Field(..., alias="orderId")
    payment_id: Optional[str] = Field(None, alias="paymentId")
    amount: float                                   # Rupees
    currency: str
    status: str
    method: str
    timestamp: datetime
    user_id: str = Field(..., alias="userId")
    receipt: str
    failure_reason: Optional[str] = Field(None, alias="failureReason")

    class Config:
        populate_by_name = True

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionResponse":
        return cls(
            id=txn.id,
            order_id=txn.order_id,
            payment_id=txn.payment_id,
            amount=float(txn.amount),
            currency=txn.currency,
            status=txn.status.value,
            method=txn.method,
            timestamp=txn.timestamp,
            user_id=txn.user_id,
            receipt=txn.receipt,
            failure_reason=txn.failure_reason,
        )


class BalanceResponse(BaseModel):
    balance: float
    currency: str = "INR"
    last_updated: datetime = Field(..., alias="lastUpdated")

    class Config:
        populate_by_name = True


# ──────────────── Admin / Audit ────────────────

class AuditLogEntry(BaseModel):
    id: int
    order_id: str
    action: str
    payload: Optional[Dict] = None
    payload_hash: Optional[str] = None
    previous_hash: Optional[str] = None
    timestamp: datetime
    log_metadata: Optional[Dict] = None

    class Config:
        from_attributes = True


# ──────────────── Generic ────────────────

class HealthResponse(BaseModel):
    status: str
    database: str
    gateway: str
    ledger_backend: str
    version: str
    uptime_seconds: float


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
    details: Optional[object] = None


class VerifyErrorResponse(BaseModel):
    verified: bool = False
    error: str
    details: Optional[str] = None
