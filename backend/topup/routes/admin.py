"""
Admin Routes — payment audit trail access.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from topup.database import get_db
from topup.schemas.schemas import AuditLogEntry
from topup.services.audit_service import AuditService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/audit/{order_id}", response_model=list[AuditLogEntry])
def get_audit_trail(order_id: str, db: Session = Depends(get_db)):
    """Get the full audit trail for an order."""
    logs = AuditService.get_trail(db, order_id)
    if not logs:
        raise HTTPException(status_code=404, detail="No audit logs found for this order")
    return logs


@router.get("/audit/{order_id}/verify")
def verify_audit_chain(order_id: str, db: Session = Depends(get_db)):
    """Verify the integrity of the audit hash chain for an order."""
    return AuditService.verify_chain(db, order_id)
