"""
Notification Service — user-facing messages for each terminal top-up state.
"""
from dataclasses import dataclass
from typing import Optional

from topup.errors import (
    MISSING_PAYMENT_DETAILS, PAYMENT_CANCELLED, PAYMENT_FAILED, SIGNATURE_MISMATCH,
)
from topup.models.payment import TransactionStatus
from topup.utils.money import RupeeAmount, format_inr


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"  # default | destructive


class NotificationService:
    @staticmethod
    def for_outcome(status: TransactionStatus, reason: Optional[str] = None,
                    amount: Optional[RupeeAmount] = None) -> Notification:
        """Pick the notification for a resolved top-up attempt."""
        if status is TransactionStatus.SUCCESS:
            added = format_inr(amount) if amount is not None else "The amount"
            return Notification("Payment Successful!", f"{added} has been added to your account")

        if reason == PAYMENT_CANCELLED:
            return Notification("Payment Cancelled", "Payment was cancelled", "destructive")
        if reason == PAYMENT_FAILED:
            return Notification(
                "Payment Failed", "Payment failed. Please check your payment details.", "destructive",
            )
        if reason in (SIGNATURE_MISMATCH, MISSING_PAYMENT_DETAILS):
            return Notification(
                "Payment Verification Failed",
                "We could not verify this payment. No money has been added to your account.",
                "destructive",
            )
        return Notification("Payment Failed", "Something went wrong. Please try again.", "destructive")
