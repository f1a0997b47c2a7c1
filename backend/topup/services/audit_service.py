"""
Audit Service — Manages the append-only, hash-chained payment audit trail.

Each entry stores what it hashed, so the chain can be recomputed from the
rows alone: editing any entry's action, payload, metadata or hash breaks
verification at that entry.
"""
import logging
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.orm import Session

from topup.models.records import AuditLog
from topup.utils.hashing import chain_digest

logger = logging.getLogger(__name__)

# Actions
ORDER_CREATED = "ORDER_CREATED"
PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
PAYMENT_VERIFICATION_FAILED = "PAYMENT_VERIFICATION_FAILED"
CHECKOUT_CANCELLED = "CHECKOUT_CANCELLED"
CHECKOUT_FAILED = "CHECKOUT_FAILED"


def _hashed_fields(order_id: str, action: str, payload: Optional[Dict],
                   ip_address: Optional[str], metadata: Optional[Dict]) -> dict:
    return {
        "order_id": order_id,
        "action": action,
        "payload": payload or {},
        "ip_address": ip_address,
        "metadata": metadata or {},
    }


class AuditService:
    """Creates tamper-evident audit log entries, one chain per gateway order."""

    @staticmethod
    def log(
        db: Session,
        order_id: str,
        action: str,
        payload: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> AuditLog:
        """Append an entry to the order's chain.

        Args:
            db: Database session.
            order_id: Gateway order this event belongs to.
            action: Action identifier (e.g. ORDER_CREATED).
            payload: Event data.
            ip_address: Client IP.
            metadata: Additional context (reason codes, statuses).

        Returns:
            The created AuditLog entry.
        """
        last_entry = (
            db.query(AuditLog)
            .filter(AuditLog.order_id == order_id)
            .order_by(AuditLog.id.desc())
            .first()
        )
        previous_hash = last_entry.payload_hash if last_entry else ""

        entry = AuditLog(
            order_id=order_id,
            action=action,
            payload=payload or {},
            payload_hash=chain_digest(
                _hashed_fields(order_id, action, payload, ip_address, metadata), previous_hash,
            ),
            previous_hash=previous_hash,
            ip_address=ip_address,
            log_metadata=metadata or {},
            timestamp=datetime.utcnow(),
        )

        db.add(entry)
        db.commit()
        db.refresh(entry)

        return entry

    @staticmethod
    def get_trail(db: Session, order_id: str) -> list[AuditLog]:
        """Full trail for an order, oldest first."""
        return (
            db.query(AuditLog)
            .filter(AuditLog.order_id == order_id)
            .order_by(AuditLog.id.asc())
            .all()
        )

    @staticmethod
    def verify_chain(db: Session, order_id: str) -> dict:
        """Recompute every entry's hash and check it links to its predecessor.

        Returns:
            dict with 'valid' (bool), 'total_entries', and 'broken_at' (if invalid).
        """
        entries = AuditService.get_trail(db, order_id)

        expected_prev = ""
        for entry in entries:
            recomputed = chain_digest(
                _hashed_fields(entry.order_id, entry.action, entry.payload, entry.ip_address, entry.log_metadata),
                entry.previous_hash or "",
            )
            if entry.previous_hash != expected_prev:
                problem = "does not link to the previous entry"
            elif entry.payload_hash != recomputed:
                problem = "was modified after it was written"
            else:
                expected_prev = entry.payload_hash
                continue

            logger.warning("Audit chain for order %s broken at entry %s (%s)", order_id, entry.id, entry.action)
            return {
                "valid": False,
                "total_entries": len(entries),
                "broken_at": entry.id,
                "message": f"Entry {entry.id} ({entry.action}) {problem}",
            }

        return {"valid": True, "total_entries": len(entries), "broken_at": None}
