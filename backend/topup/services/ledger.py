"""
Transaction Ledger — local record of each top-up attempt.

One transaction per gateway order. A transaction starts PENDING and moves to
SUCCESS or FAILED exactly once; later resolutions are ignored.
"""
import logging
import threading
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from topup.errors import LedgerError, DUPLICATE_ORDER
from topup.models.payment import Transaction, TransactionStatus
from topup.models.records import TransactionRecord
from topup.utils.money import RupeeAmount

logger = logging.getLogger(__name__)


class TransactionStore:
    """Storage seam for the ledger. Implementations need not be thread-safe."""

    def add(self, txn: Transaction) -> None:
        raise NotImplementedError

    def save(self, txn: Transaction) -> None:
        raise NotImplementedError

    def get_by_order(self, order_id: str) -> Optional[Transaction]:
        raise NotImplementedError

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        """All transactions (optionally one user's), newest first."""
        raise NotImplementedError


class InMemoryTransactionStore(TransactionStore):
    """Dict-backed store; contents die with the process."""

    def __init__(self):
        self._by_id: Dict[str, Transaction] = {}
        self._order_index: Dict[str, str] = {}

    def add(self, txn: Transaction) -> None:
        self._by_id[txn.id] = txn
        self._order_index[txn.order_id] = txn.id

    def save(self, txn: Transaction) -> None:
        self._by_id[txn.id] = txn

    def get_by_order(self, order_id: str) -> Optional[Transaction]:
        txn_id = self._order_index.get(order_id)
        return self._by_id.get(txn_id) if txn_id else None

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        rows = [t for t in self._by_id.values() if user_id is None or t.user_id == user_id]
        # Insertion order breaks timestamp ties
        ordered = sorted(enumerate(rows), key=lambda p: (p[1].timestamp, p[0]), reverse=True)
        return [t for _, t in ordered]


def _to_record(txn: Transaction, record: Optional[TransactionRecord] = None) -> TransactionRecord:
    record = record or TransactionRecord(id=txn.id)
    record.order_id = txn.order_id
    record.payment_id = txn.payment_id
    record.amount = txn.amount.value
    record.currency = txn.currency
    record.method = txn.method
    record.receipt = txn.receipt
    record.user_id = txn.user_id
    record.status = txn.status.value
    record.failure_reason = txn.failure_reason
    record.timestamp = txn.timestamp
    record.resolved_at = txn.resolved_at
    return record


def _from_record(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        order_id=record.order_id,
        amount=RupeeAmount(Decimal(record.amount)),
        currency=record.currency,
        method=record.method,
        user_id=record.user_id,
        receipt=record.receipt,
        status=TransactionStatus(record.status),
        payment_id=record.payment_id,
        failure_reason=record.failure_reason,
        timestamp=record.timestamp,
        resolved_at=record.resolved_at,
    )


class SqlTransactionStore(TransactionStore):
    """SQLAlchemy-backed store; durability depends on DATABASE_URL."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def add(self, txn: Transaction) -> None:
        db: Session = self._session_factory()
        try:
            db.add(_to_record(txn))
            db.commit()
        finally:
            db.close()

    def save(self, txn: Transaction) -> None:
        db: Session = self._session_factory()
        try:
            record = db.get(TransactionRecord, txn.id)
            if record is None:
                db.add(_to_record(txn))
            else:
                _to_record(txn, record)
            db.commit()
        finally:
            db.close()

    def get_by_order(self, order_id: str) -> Optional[Transaction]:
        db: Session = self._session_factory()
        try:
            record = db.query(TransactionRecord).filter(TransactionRecord.order_id == order_id).first()
            return _from_record(record) if record else None
        finally:
            db.close()

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        db: Session = self._session_factory()
        try:
            query = db.query(TransactionRecord)
            if user_id is not None:
                query = query.filter(TransactionRecord.user_id == user_id)
            rows = query.order_by(TransactionRecord.timestamp.desc()).all()
            return [_from_record(r) for r in rows]
        finally:
            db.close()


def new_transaction_id() -> str:
    return f"TXN{uuid.uuid4().hex[:12].upper()}"


class TransactionLedger:
    """State machine over a ``TransactionStore``.

    FastAPI runs sync routes on a thread pool, so every read-modify-write
    happens under one lock.
    """

    def __init__(self, store: Optional[TransactionStore] = None,
                 id_factory: Callable[[], str] = new_transaction_id):
        self.store = store or InMemoryTransactionStore()
        self._new_id = id_factory
        self._lock = threading.Lock()
        self._last_stamp: Optional[datetime] = None

    def record(self, order_id: str, amount: RupeeAmount, currency: str, method: str,
               user_id: str, receipt: str) -> Transaction:
        """Insert a PENDING transaction for a freshly created order.

        Raises:
            LedgerError: the order already has a transaction.
        """
        with self._lock:
            if self.store.get_by_order(order_id) is not None:
                raise LedgerError(DUPLICATE_ORDER, f"Order {order_id} already has a transaction")
            # Strictly increasing, so newest-first never depends on clock resolution
            stamp = datetime.utcnow()
            if self._last_stamp is not None and stamp <= self._last_stamp:
                stamp = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = stamp
            txn = Transaction(
                timestamp=stamp,
                id=self._new_id(),
                order_id=order_id,
                amount=amount,
                currency=currency,
                method=method,
                user_id=user_id,
                receipt=receipt,
            )
            self.store.add(txn)
        logger.info("Transaction %s recorded PENDING for order %s (%s)", txn.id, order_id, amount)
        return txn

    def mark_resolved(self, order_id: str, status: TransactionStatus,
                      payment_id: Optional[str] = None, reason: Optional[str] = None) -> Optional[Transaction]:
        """Move the order's PENDING transaction to a terminal status.

        Returns the transaction as it stands afterwards, or None when the
        order is unknown. Already-resolved transactions are returned unchanged.
        """
        if not status.is_terminal:
            raise ValueError("A transaction can only be resolved to SUCCESS or FAILED")

        with self._lock:
            txn = self.store.get_by_order(order_id)
            if txn is None:
                logger.warning("No transaction for order %s; ignoring %s", order_id, status.value)
                return None
            if txn.status.is_terminal:
                logger.info("Transaction %s already %s; ignoring %s", txn.id, txn.status.value, status.value)
                return txn
            txn = txn.resolve(status, payment_id=payment_id, reason=reason)
            self.store.save(txn)

        logger.info("Transaction %s -> %s (order=%s reason=%s)", txn.id, status.value, order_id, reason)
        return txn

    def get(self, order_id: str) -> Optional[Transaction]:
        return self.store.get_by_order(order_id)

    def list(self, user_id: Optional[str] = None) -> List[Transaction]:
        return self.store.list(user_id)

    def settled_total(self, user_id: str) -> RupeeAmount:
        """Sum of the user's SUCCESS transactions."""
        total = sum(
            (t.amount.value for t in self.store.list(user_id) if t.status is TransactionStatus.SUCCESS),
            Decimal("0"),
        )
        return RupeeAmount(total)
