"""
Top-up Service Tests — full attempts from validation through the ledger.
"""
import threading
import unittest

from topup.errors import (
    AMOUNT_TOO_HIGH, MISSING_PAYMENT_DETAILS, OrderCreationError, PAYMENT_CANCELLED,
    PAYMENT_FAILED, SIGNATURE_MISMATCH, TopUpValidationError, VERIFICATION_ERROR,
)
from topup.models.payment import OrderRequest, TransactionStatus
from topup.services.checkout import (
    CheckoutCancelled, CheckoutConfig, CheckoutCoordinator, CheckoutFailed, UserDetails,
)
from topup.services.ledger import TransactionLedger
from topup.services.notification_service import NotificationService
from topup.services.order_service import PaymentOrderService
from topup.services.signature import SignatureVerifier
from topup.services.topup_service import TopUpService
from topup.utils.money import PaiseAmount, RupeeAmount

from tests.fakes import TEST_SECRET, FakeGateway, dismiss, fail, pay, scripted, sign

USER = UserDetails(name="Asha", email="asha@example.com", phone="9999999999")


class SpyVerifier(SignatureVerifier):
    def __init__(self, secret):
        super().__init__(secret)
        self.calls = []

    def verify(self, order_id, payment_id, signature):
        self.calls.append((order_id, payment_id, signature))
        return super().verify(order_id, payment_id, signature)


class ThreadRecordingLedger(TransactionLedger):
    """Notes the thread every resolution runs on."""

    def __init__(self):
        super().__init__()
        self.resolve_threads = []

    def mark_resolved(self, *args, **kwargs):
        self.resolve_threads.append(threading.get_ident())
        return super().mark_resolved(*args, **kwargs)


def build_service(gateway=None):
    gateway = gateway or FakeGateway()
    verifier = SpyVerifier(TEST_SECRET)
    service = TopUpService(PaymentOrderService(gateway), ThreadRecordingLedger(), verifier)
    return service, gateway, verifier


def coordinator(script):
    return CheckoutCoordinator(scripted(script), CheckoutConfig(key_id="rzp_test_key", timeout_seconds=5))


class TestTopUp(unittest.IsolatedAsyncioTestCase):
    async def test_successful_payment(self):
        service, gateway, verifier = build_service()

        outcome = await service.top_up(5000, "INR", "u1", "UPI", USER, coordinator(pay("pay_ok")))

        self.assertEqual(outcome.status, TransactionStatus.SUCCESS)
        self.assertIsNone(outcome.reason)
        self.assertEqual(gateway.calls[0]["amount"], 500000)
        self.assertEqual(verifier.calls, [("order_test0001", "pay_ok", sign("order_test0001", "pay_ok"))])

        txn = service.ledger.get("order_test0001")
        self.assertEqual(txn.status, TransactionStatus.SUCCESS)
        self.assertEqual(txn.payment_id, "pay_ok")
        self.assertEqual(txn.amount, RupeeAmount(5000))
        self.assertEqual(outcome.notification.title, "Payment Successful!")
        self.assertEqual(outcome.notification.description, "₹5,000 has been added to your account")

    async def test_dismissed_checkout_skips_verification(self):
        service, _, verifier = build_service()

        outcome = await service.top_up(100, "INR", "u1", "CARD", USER, coordinator(dismiss))

        self.assertEqual(outcome.status, TransactionStatus.FAILED)
        self.assertEqual(outcome.reason, PAYMENT_CANCELLED)
        self.assertEqual(verifier.calls, [])
        self.assertEqual(service.ledger.get("order_test0001").failure_reason, PAYMENT_CANCELLED)
        self.assertEqual(outcome.notification.title, "Payment Cancelled")

    async def test_forged_signature_fails(self):
        service, _, verifier = build_service()

        outcome = await service.top_up(250, "INR", "u1", "UPI", USER, coordinator(pay(secret="wrong-secret")))

        self.assertEqual(outcome.status, TransactionStatus.FAILED)
        self.assertEqual(outcome.reason, SIGNATURE_MISMATCH)
        self.assertEqual(len(verifier.calls), 1)
        self.assertEqual(service.ledger.get("order_test0001").status, TransactionStatus.FAILED)
        self.assertEqual(outcome.notification.title, "Payment Verification Failed")

    async def test_gateway_failure_event(self):
        service, _, verifier = build_service()

        outcome = await service.top_up(250, "INR", "u1", "UPI", USER, coordinator(fail("Card declined")))

        self.assertEqual(outcome.reason, PAYMENT_FAILED)
        self.assertEqual(verifier.calls, [])
        self.assertEqual(outcome.notification.description, "Payment failed. Please check your payment details.")

    async def test_missing_signature_fields(self):
        service, _, _ = build_service()

        outcome = await service.top_up(250, "INR", "u1", "UPI", USER, coordinator(pay(signature="")))

        self.assertEqual(outcome.status, TransactionStatus.FAILED)
        self.assertEqual(outcome.reason, MISSING_PAYMENT_DETAILS)

    async def test_invalid_amount_never_reaches_gateway(self):
        service, gateway, _ = build_service()

        with self.assertRaises(TopUpValidationError) as ctx:
            await service.top_up(200001, "INR", "u1", "UPI", USER, coordinator(dismiss))

        self.assertEqual(ctx.exception.code, AMOUNT_TOO_HIGH)
        self.assertEqual(gateway.calls, [])
        self.assertEqual(service.ledger.list(), [])

    async def test_order_failure_records_nothing(self):
        service, _, _ = build_service(FakeGateway(fail_with=OrderCreationError(details="gateway down")))

        with self.assertRaises(OrderCreationError):
            await service.top_up(500, "INR", "u1", "UPI", USER, coordinator(dismiss))

        self.assertEqual(service.ledger.list(), [])

    async def test_crash_after_checkout_fails_transaction(self):
        service, _, _ = build_service()

        def explode(*args, **kwargs):
            raise RuntimeError("verification backend unavailable")

        service.verify_payment = explode
        outcome = await service.top_up(500, "INR", "u1", "UPI", USER, coordinator(pay()))

        self.assertEqual(outcome.status, TransactionStatus.FAILED)
        self.assertEqual(outcome.reason, VERIFICATION_ERROR)
        self.assertEqual(service.ledger.get("order_test0001").status, TransactionStatus.FAILED)

    async def test_payment_for_another_order_does_not_settle_this_one(self):
        service, _, _ = build_service()

        def other_order(surface):
            surface.options["handler"]({
                "razorpay_order_id": "order_other",
                "razorpay_payment_id": "pay_x",
                "razorpay_signature": sign("order_other", "pay_x"),
            })

        outcome = await service.top_up(500, "INR", "u1", "UPI", USER, coordinator(other_order))

        self.assertEqual(outcome.status, TransactionStatus.FAILED)
        self.assertEqual(service.ledger.get("order_test0001").status, TransactionStatus.FAILED)


class TestLedgerCallsLeaveTheEventLoop(unittest.IsolatedAsyncioTestCase):
    async def test_cancelled_checkout_resolves_off_loop(self):
        service, _, _ = build_service()
        await service.top_up(500, "INR", "u1", "UPI", USER, coordinator(dismiss))

        self.assertEqual(len(service.ledger.resolve_threads), 1)
        self.assertNotIn(threading.get_ident(), service.ledger.resolve_threads)

    async def test_fallback_failure_resolves_off_loop(self):
        service, _, _ = build_service()

        def explode(*args, **kwargs):
            raise RuntimeError("verification backend unavailable")

        service.verify_payment = explode
        await service.top_up(500, "INR", "u1", "UPI", USER, coordinator(pay()))

        self.assertEqual(len(service.ledger.resolve_threads), 1)
        self.assertNotIn(threading.get_ident(), service.ledger.resolve_threads)


class TestServerSideSteps(unittest.TestCase):
    def setUp(self):
        self.service, self.gateway, _ = build_service()
        request = OrderRequest(amount=PaiseAmount(12345), currency="INR",
                               receipt="topup_u1_1", user_id="u1", method="WALLET")
        self.order, self.txn = self.service.create_order(request)

    def test_create_records_pending_in_rupees(self):
        self.assertEqual(self.txn.status, TransactionStatus.PENDING)
        self.assertEqual(self.txn.amount, RupeeAmount("123.45"))
        self.assertEqual(self.txn.method, "WALLET")

    def test_verify_settles_once(self):
        result, txn = self.service.verify_payment(self.order.id, "pay_1", sign(self.order.id, "pay_1"))
        self.assertTrue(result.verified)
        self.assertEqual(txn.status, TransactionStatus.SUCCESS)

        # A later failure report cannot undo the success
        txn = self.service.record_checkout_outcome(self.order.id, CheckoutFailed("late"))
        self.assertEqual(txn.status, TransactionStatus.SUCCESS)

    def test_verify_without_order_id(self):
        result, txn = self.service.verify_payment(None, "pay_1", "sig")
        self.assertFalse(result.verified)
        self.assertEqual(result.reason, MISSING_PAYMENT_DETAILS)
        self.assertIsNone(txn)

    def test_checkout_outcome_unknown_order(self):
        self.assertIsNone(self.service.record_checkout_outcome("order_nope", CheckoutCancelled()))

    def test_checkout_outcome_rejects_success(self):
        with self.assertRaises(TypeError):
            self.service.record_checkout_outcome(self.order.id, object())


class TestNotifications(unittest.TestCase):
    def test_messages_differ_per_outcome(self):
        titles = {
            NotificationService.for_outcome(TransactionStatus.SUCCESS, amount=RupeeAmount(200000)).description,
            NotificationService.for_outcome(TransactionStatus.FAILED, PAYMENT_CANCELLED).description,
            NotificationService.for_outcome(TransactionStatus.FAILED, PAYMENT_FAILED).description,
            NotificationService.for_outcome(TransactionStatus.FAILED, SIGNATURE_MISMATCH).description,
            NotificationService.for_outcome(TransactionStatus.FAILED, VERIFICATION_ERROR).description,
        }
        self.assertEqual(len(titles), 5)

    def test_success_amount_uses_indian_grouping(self):
        note = NotificationService.for_outcome(TransactionStatus.SUCCESS, amount=RupeeAmount(200000))
        self.assertEqual(note.description, "₹2,00,000 has been added to your account")
        self.assertEqual(note.variant, "default")

    def test_unknown_failure(self):
        note = NotificationService.for_outcome(TransactionStatus.FAILED, VERIFICATION_ERROR)
        self.assertEqual(note.description, "Something went wrong. Please try again.")
        self.assertEqual(note.variant, "destructive")


if __name__ == "__main__":
    unittest.main()
