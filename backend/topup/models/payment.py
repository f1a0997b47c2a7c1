"""
Payment Domain Types — top-up request, gateway order and ledger transaction.
"""
import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from topup.utils.money import PaiseAmount, RupeeAmount


class PaymentMethod(str, enum.Enum):
    UPI = "UPI"
    NETBANKING = "NETBANKING"
    CARD = "CARD"
    WALLET = "WALLET"


# Labels the dashboard has historically sent for the same four methods
_METHOD_ALIASES = {
    "NET_BANKING": PaymentMethod.NETBANKING,
    "NET BANKING": PaymentMethod.NETBANKING,
    "DEBIT_CARD": PaymentMethod.CARD,
    "CREDIT_CARD": PaymentMethod.CARD,
    "DEBIT CARD": PaymentMethod.CARD,
    "CREDIT CARD": PaymentMethod.CARD,
    "DIGITAL WALLET": PaymentMethod.WALLET,
}


def normalize_method(method: str) -> str:
    """Map a method label onto one of the four canonical methods.

    Unknown labels pass through upper-cased; the method is informational only.
    """
    key = method.strip().upper()
    if key in PaymentMethod.__members__:
        return PaymentMethod[key].value
    alias = _METHOD_ALIASES.get(key)
    return alias.value if alias else key


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


@dataclass(frozen=True)
class TopUpRequest:
    """A validated top-up request, in rupees."""
    amount: RupeeAmount
    currency: str
    user_id: str
    method: str


@dataclass(frozen=True)
class OrderRequest:
    """A validated order-creation request, in paise."""
    amount: PaiseAmount
    currency: str
    receipt: str
    user_id: str
    method: str = PaymentMethod.UPI.value


@dataclass(frozen=True)
class PaymentOrder:
    id: str
    amount: PaiseAmount
    currency: str
    receipt: str
    status: str
    created_at: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount.value,
            "currency": self.currency,
            "receipt": self.receipt,
            "status": self.status,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Transaction:
    id: str
    order_id: str
    amount: RupeeAmount
    currency: str
    method: str
    user_id: str
    receipt: str
    status: TransactionStatus = TransactionStatus.PENDING
    payment_id: Optional[str] = None
    failure_reason: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    resolved_at: Optional[datetime] = None

    def resolve(self, status: TransactionStatus, payment_id: Optional[str] = None,
                reason: Optional[str] = None) -> "Transaction":
        return replace(
            self,
            status=status,
            payment_id=payment_id or self.payment_id,
            failure_reason=reason,
            resolved_at=datetime.utcnow(),
        )
