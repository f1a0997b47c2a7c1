"""
ORM Records — SQL-backed ledger rows and the hash-chained audit trail.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime, JSON

from topup.database import Base


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(String(40), primary_key=True)
    order_id = Column(String(64), nullable=False, unique=True, index=True)
    payment_id = Column(String(64), nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)   # Rupees, not paise
    currency = Column(String(3), nullable=False, default="INR")
    method = Column(String(16), nullable=False)        # UPI | NETBANKING | CARD | WALLET
    receipt = Column(String(64), nullable=False)
    user_id = Column(String(128), nullable=False, index=True)

    status = Column(String(16), nullable=False, default="PENDING")  # PENDING | SUCCESS | FAILED
    failure_reason = Column(String(32), nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    resolved_at = Column(DateTime, nullable=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    order_id = Column(String(64), nullable=False, index=True)

    action = Column(String(50), nullable=False)
    # Actions: ORDER_CREATED, PAYMENT_VERIFIED, PAYMENT_VERIFICATION_FAILED,
    #          CHECKOUT_CANCELLED, CHECKOUT_FAILED

    payload = Column(JSON, default=dict)
    payload_hash = Column(String(64))       # Chain hash over previous_hash + the entry's hashed fields
    previous_hash = Column(String(64))

    ip_address = Column(String(45))
    log_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
