from topup.services.gateway import PaymentGateway, RazorpayGateway
from topup.services.order_service import PaymentOrderService
from topup.services.checkout import CheckoutCoordinator
from topup.services.signature import SignatureVerifier
from topup.services.ledger import TransactionLedger
from topup.services.audit_service import AuditService
from topup.services.notification_service import NotificationService
from topup.services.topup_service import TopUpService

__all__ = [
    "PaymentGateway", "RazorpayGateway", "PaymentOrderService", "CheckoutCoordinator",
    "SignatureVerifier", "TransactionLedger", "AuditService", "NotificationService", "TopUpService",
]
