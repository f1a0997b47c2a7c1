"""
Account Routes — balance derived from the opening balance and settled top-ups.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from topup.config import Settings
from topup.dependencies import get_app_settings, get_topup_service
from topup.schemas.schemas import BalanceResponse, ErrorResponse
from topup.services.topup_service import TopUpService

router = APIRouter(prefix="/api/account", tags=["Account"])


@router.get("/balance", response_model=BalanceResponse, responses={400: {"model": ErrorResponse}})
def get_balance(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: TopUpService = Depends(get_topup_service),
    settings: Settings = Depends(get_app_settings),
):
    """Opening balance plus every verified top-up for the user."""
    if not user_id:
        return JSONResponse(status_code=400, content={"error": "User ID required"})

    settled = service.ledger.settled_total(user_id)
    balance = Decimal(settings.OPENING_BALANCE_RUPEES) + settled.value
    return BalanceResponse(balance=float(balance), currency=settings.DEFAULT_CURRENCY, last_updated=datetime.utcnow())
