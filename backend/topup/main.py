"""
Top-up API — FastAPI Application Entry Point

Wires the gateway client, ledger, verifier and audit database into one
application, registers routers and error handlers, and logs every API call.
"""
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy import text

from topup.config import Settings, get_settings
from topup.database import build_engine, build_session_factory, init_db
from topup.errors import PaymentError
from topup.logging_config import configure_logging
from topup.routes import payments_router, account_router, admin_router
from topup.schemas.schemas import HealthResponse
from topup.services.gateway import PaymentGateway, RazorpayGateway
from topup.services.ledger import InMemoryTransactionStore, SqlTransactionStore, TransactionLedger
from topup.services.order_service import PaymentOrderService
from topup.services.signature import SignatureVerifier
from topup.services.topup_service import TopUpService
from topup.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, gateway: Optional[PaymentGateway] = None) -> FastAPI:
    """Build a fully wired application. Each call gets its own ledger and database."""
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    init_db(engine)
    session_factory = build_session_factory(engine)

    if settings.LEDGER_BACKEND == "sql":
        store = SqlTransactionStore(session_factory)
    else:
        store = InMemoryTransactionStore()

    service = TopUpService(
        order_service=PaymentOrderService(
            gateway or RazorpayGateway(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            platform=settings.MERCHANT_NAME,
        ),
        ledger=TransactionLedger(store),
        verifier=SignatureVerifier(settings.RAZORPAY_KEY_SECRET),
        min_rupees=settings.MIN_TOPUP_RUPEES,
        max_rupees=settings.MAX_TOPUP_RUPEES,
    )

    # ─── Application Instance ───────────────────────────────────────
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Account top-up payments for the trading dashboard: Razorpay order creation, "
            "checkout handoff, HMAC signature verification and an in-process transaction ledger."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.topup_service = service
    app.state.create_order_limiter = RateLimiter(settings.CREATE_ORDER_RATE_LIMIT, settings.CREATE_ORDER_RATE_WINDOW)
    app.state.boot_time = time.time()

    # ─── Startup ────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        """Log boot info."""
        logger.info(
            "\n%s\n  %s v%s\n  RAZORPAY KEY: %s\n  LEDGER: %s\n  DATABASE: %s\n  DEBUG: %s\n%s",
            "=" * 60,
            settings.APP_NAME, settings.APP_VERSION,
            {
                "configured": "[OK] Loaded",
                "default-test-keys": "[!] Bundled test keys (test only)",
            }.get(settings.gateway_status, "[!] Missing"),
            settings.LEDGER_BACKEND,
            settings.DATABASE_URL,
            settings.DEBUG,
            "=" * 60,
        )

    # ─── Middleware ─────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every API request with timing."""
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 1)

        if request.url.path.startswith("/api"):
            logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

        return response

    # ─── Error Handlers ─────────────────────────────────────────────
    @app.exception_handler(PaymentError)
    async def payment_error_handler(request: Request, exc: PaymentError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.details)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    # ─── API Routers ────────────────────────────────────────────────
    app.include_router(payments_router)
    app.include_router(account_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["Health"], response_model=HealthResponse)
    def deep_health():
        """Detailed health check including dependency statuses."""
        db_ok = False
        db = session_factory()
        try:
            db.execute(text("SELECT 1"))
            db_ok = True
        except Exception:
            logger.exception("Health check: database unreachable")
        finally:
            db.close()

        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            database="connected" if db_ok else "disconnected",
            gateway=settings.gateway_status,
            ledger_backend=settings.LEDGER_BACKEND,
            version=settings.APP_VERSION,
            uptime_seconds=round(time.time() - app.state.boot_time, 1),
        )

    return app


app = create_app()
