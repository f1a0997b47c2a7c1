"""
Audit Trail Tests — hash chain integrity and concurrent writers.
"""
import os
import tempfile
import threading
import unittest

from sqlalchemy import func, text

from topup.database import build_engine, build_session_factory, init_db
from topup.models.records import AuditLog
from topup.services import audit_service
from topup.services.audit_service import AuditService


class AuditTestCase(unittest.TestCase):
    def setUp(self):
        path = os.path.join(tempfile.mkdtemp(prefix="topup-audit-"), "audit.db")
        self.engine = build_engine(f"sqlite:///{path}")
        init_db(self.engine)
        self.session_factory = build_session_factory(self.engine)
        self.db = self.session_factory()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def write_trail(self, order_id="order_1"):
        AuditService.log(
            self.db, order_id, audit_service.ORDER_CREATED,
            payload={"amount": 500000, "currency": "INR"}, ip_address="10.0.0.1",
            metadata={"user_id": "u1"},
        )
        AuditService.log(
            self.db, order_id, audit_service.PAYMENT_VERIFICATION_FAILED,
            payload={"payment_id": "pay_1", "verified": False}, ip_address="10.0.0.1",
            metadata={"reason": "SIGNATURE_MISMATCH", "status": "FAILED"},
        )

    def tamper(self, statement):
        self.db.execute(text(statement))
        self.db.commit()
        self.db.expire_all()


class TestChain(AuditTestCase):
    def test_intact_chain(self):
        self.write_trail()
        trail = AuditService.get_trail(self.db, "order_1")
        self.assertEqual(trail[0].previous_hash, "")
        self.assertEqual(trail[1].previous_hash, trail[0].payload_hash)
        self.assertEqual(trail[0].payload, {"amount": 500000, "currency": "INR"})
        self.assertEqual(
            AuditService.verify_chain(self.db, "order_1"),
            {"valid": True, "total_entries": 2, "broken_at": None},
        )

    def test_chains_are_per_order(self):
        self.write_trail("order_1")
        self.write_trail("order_2")
        self.assertEqual(AuditService.get_trail(self.db, "order_2")[0].previous_hash, "")
        self.assertTrue(AuditService.verify_chain(self.db, "order_2")["valid"])

    def test_empty_trail(self):
        self.assertEqual(
            AuditService.verify_chain(self.db, "order_none"),
            {"valid": True, "total_entries": 0, "broken_at": None},
        )


class TestTamperDetection(AuditTestCase):
    def setUp(self):
        super().setUp()
        self.write_trail()
        self.ids = [e.id for e in AuditService.get_trail(self.db, "order_1")]

    def assertBrokenAt(self, entry_id):
        result = AuditService.verify_chain(self.db, "order_1")
        self.assertFalse(result["valid"])
        self.assertEqual(result["broken_at"], entry_id)

    def test_rewritten_action_and_hash(self):
        self.tamper(f"UPDATE audit_logs SET action='PAYMENT_VERIFIED', payload_hash='deadbeef' WHERE id={self.ids[1]}")
        self.assertBrokenAt(self.ids[1])

    def test_rewritten_action_only(self):
        self.tamper(f"UPDATE audit_logs SET action='PAYMENT_VERIFIED' WHERE id={self.ids[1]}")
        self.assertBrokenAt(self.ids[1])

    def test_rewritten_metadata(self):
        self.tamper(
            "UPDATE audit_logs SET log_metadata='{\"reason\": null, \"status\": \"SUCCESS\"}' "
            f"WHERE id={self.ids[1]}"
        )
        self.assertBrokenAt(self.ids[1])

    def test_rewritten_payload_of_first_entry(self):
        self.tamper(f"UPDATE audit_logs SET payload='{{\"amount\": 1, \"currency\": \"INR\"}}' WHERE id={self.ids[0]}")
        self.assertBrokenAt(self.ids[0])

    def test_rewritten_link(self):
        self.tamper(f"UPDATE audit_logs SET previous_hash='' WHERE id={self.ids[1]}")
        self.assertBrokenAt(self.ids[1])


class TestConcurrentWriters(AuditTestCase):
    def test_no_entries_lost(self):
        errors = []
        barrier = threading.Barrier(8)

        def writer(n):
            db = self.session_factory()
            try:
                barrier.wait()
                for i in range(20):
                    AuditService.log(db, f"order_{n}", audit_service.ORDER_CREATED, payload={"i": i})
            except Exception as exc:
                errors.append(exc)
            finally:
                db.close()

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.db.query(func.count(AuditLog.id)).scalar(), 160)
        for n in range(8):
            self.assertTrue(AuditService.verify_chain(self.db, f"order_{n}")["valid"])


if __name__ == "__main__":
    unittest.main()
