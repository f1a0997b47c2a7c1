from topup.models.payment import (
    OrderRequest, PaymentMethod, PaymentOrder, TopUpRequest, Transaction, TransactionStatus,
)
from topup.models.records import AuditLog, TransactionRecord

__all__ = [
    "OrderRequest", "PaymentMethod", "PaymentOrder", "TopUpRequest", "Transaction", "TransactionStatus",
    "AuditLog", "TransactionRecord",
]
