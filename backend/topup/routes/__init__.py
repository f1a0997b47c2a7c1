from topup.routes.payments import router as payments_router
from topup.routes.account import router as account_router
from topup.routes.admin import router as admin_router

__all__ = ["payments_router", "account_router", "admin_router"]
