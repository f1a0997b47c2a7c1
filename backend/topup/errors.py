"""
Domain Errors — machine-checkable reason codes for the top-up flow.
"""
from typing import Any, Optional

# Validation reasons
MISSING_FIELDS = "MISSING_FIELDS"
AMOUNT_TOO_LOW = "AMOUNT_TOO_LOW"
AMOUNT_TOO_HIGH = "AMOUNT_TOO_HIGH"

# Gateway / ledger
ORDER_CREATION_FAILED = "ORDER_CREATION_FAILED"
TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
DUPLICATE_ORDER = "DUPLICATE_ORDER"
TRANSACTION_RESOLVED = "TRANSACTION_RESOLVED"
RATE_LIMITED = "RATE_LIMITED"

# Checkout / verification outcomes
PAYMENT_CANCELLED = "PAYMENT_CANCELLED"
PAYMENT_FAILED = "PAYMENT_FAILED"
MISSING_PAYMENT_DETAILS = "MISSING_PAYMENT_DETAILS"
SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"
VERIFICATION_ERROR = "VERIFICATION_ERROR"


class PaymentError(Exception):
    """Base class for errors rendered as ``{"error", "code", "details"}``."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Any] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class TopUpValidationError(PaymentError):
    """Client input failed shape or bounds checks; fix input and retry."""


class OrderCreationError(PaymentError):
    """The gateway refused or could not be reached while creating an order."""

    status_code = 500

    def __init__(self, message: str = "Failed to create payment order", details: Optional[Any] = None):
        super().__init__(ORDER_CREATION_FAILED, message, details=details)


class LedgerError(PaymentError):
    status_code = 409


class RateLimitError(PaymentError):
    status_code = 429

    def __init__(self, message: str):
        super().__init__(RATE_LIMITED, message)
